"""Object key allocation for gallery uploads.

Keys embed the upload time for debugging and a short random token for
uniqueness, so concurrent uploaders never need to coordinate:

    gallery/images/img-1718035200123-k3v9x2a.jpg
    gallery/videos/video-1718035200123-p0q8rzt.mp4
    gallery/videos/thumb-1718035200456-a1b2c3d.jpg
"""

import secrets
from collections.abc import Callable

from core.models.gallery import MediaKind
from core.utils.constants import (
    DEFAULT_VIDEO_MIME_TYPE,
    GALLERY_KEY_PREFIX,
    KEY_TOKEN_ALPHABET,
    KEY_TOKEN_LENGTH,
    KIND_DIRECTORIES,
    KIND_KEY_PREFIXES,
    MEDIA_KIND_VIDEO,
    MIME_TYPE_EXTENSION_MAP,
    OUTPUT_IMAGE_MIME_TYPE,
    THUMBNAIL_KEY_PREFIX,
)
from core.utils.time import unix_millis


class ObjectKeyAllocator:
    """Generates collision-resistant, human-traceable storage keys."""

    def __init__(
        self,
        *,
        clock: Callable[[], int] = unix_millis,
        token_length: int = KEY_TOKEN_LENGTH,
    ) -> None:
        self._clock = clock
        self._token_length = token_length

    def allocate(self, media_kind: MediaKind, content_type: str | None = None) -> str:
        """Allocate a key for a primary object of the given kind."""
        kind = MediaKind(media_kind)
        default_type = (
            DEFAULT_VIDEO_MIME_TYPE if kind.value == MEDIA_KIND_VIDEO else OUTPUT_IMAGE_MIME_TYPE
        )
        extension = MIME_TYPE_EXTENSION_MAP.get(content_type or default_type)
        if extension is None:
            extension = MIME_TYPE_EXTENSION_MAP[default_type]

        return self._build(
            directory=KIND_DIRECTORIES[kind.value],
            prefix=KIND_KEY_PREFIXES[kind.value],
            extension=extension,
        )

    def allocate_thumbnail(self) -> str:
        """Allocate a key for a video thumbnail (always JPEG)."""
        return self._build(
            directory=KIND_DIRECTORIES[MEDIA_KIND_VIDEO],
            prefix=THUMBNAIL_KEY_PREFIX,
            extension=MIME_TYPE_EXTENSION_MAP[OUTPUT_IMAGE_MIME_TYPE],
        )

    def _build(self, *, directory: str, prefix: str, extension: str) -> str:
        return (
            f"{GALLERY_KEY_PREFIX}/{directory}/"
            f"{prefix}-{self._clock()}-{self._token()}.{extension}"
        )

    def _token(self) -> str:
        return "".join(
            secrets.choice(KEY_TOKEN_ALPHABET) for _ in range(self._token_length)
        )
