#!/usr/bin/env python3
"""
Seed script to populate the gallery via API endpoints.

Every photo or video in --media-dir is uploaded through the upload endpoint,
then the gallery listing is logged.

Run:
    python seed/seed_gallery.py \
      --api-id <API-ID> \
      --media-dir ./samples \
      --api-key <API-KEY>
"""

import argparse
import base64
from pathlib import Path
import sys
from typing import Any, cast

from aws_lambda_powertools import Logger
import requests

logger = Logger(service="seed")


GALLERY_API_URL = "http://localhost:4566/restapis/{0}/snd/_user_request_/v1/gallery"

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
VIDEO_SUFFIXES = {".mp4", ".mov", ".webm"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed media via Gallery API")

    parser.add_argument(
        "--api-id",
        required=True,
        help="Base API ID (e.g. LocalStack API Gateway ID)",
    )
    parser.add_argument(
        "--media-dir",
        required=True,
        type=Path,
        help="Directory holding sample photos and videos",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key for x-api-key header (optional for local)",
    )
    parser.add_argument(
        "--uploaded-by",
        default="seed",
        help="Uploader identity recorded on each item",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=4,
        help="Number of files to seed",
    )

    return parser.parse_args()


def media_kind_for(path: Path) -> str | None:
    suffix = path.suffix.lower()
    if suffix in IMAGE_SUFFIXES:
        return "image"
    if suffix in VIDEO_SUFFIXES:
        return "video"
    return None


def seed_gallery() -> None:
    try:
        args = parse_args()

        headers: dict[str, str] = {
            "Content-Type": "application/json",
        }
        if args.api_key:
            headers["x-api-key"] = args.api_key

        gallery_url = GALLERY_API_URL.format(args.api_id)

        logger.info(
            "Starting seeding process",
            extra={"api_base_url": gallery_url, "media_dir": str(args.media_dir)},
        )

        files = sorted(p for p in args.media_dir.iterdir() if media_kind_for(p))
        for media_path in files[: args.limit]:
            payload: dict[str, Any] = {
                "file": base64.b64encode(media_path.read_bytes()).decode("utf-8"),
                "media_kind": media_kind_for(media_path),
                "title": media_path.stem.replace("_", " ").title(),
                "uploaded_by": args.uploaded_by,
            }

            response = requests.post(
                gallery_url,
                headers=headers,
                json=payload,
                timeout=60,
            )

            response_json = cast(dict[str, Any], response.json())

            if response.status_code == 201:
                logger.info(
                    "Seeded media",
                    extra={
                        "file": media_path.name,
                        "item_id": response_json.get("item", {}).get("item_id"),
                    },
                )
            else:
                logger.error(
                    "Failed to seed media",
                    extra={
                        "file": media_path.name,
                        "status": response.status_code,
                        "response": response_json,
                    },
                )

        logger.info("Seeding completed")

        list_response = requests.get(gallery_url, headers=headers, timeout=30)

        logger.info(
            "List gallery response",
            extra={
                "status": list_response.status_code,
                "response": list_response.json() if list_response.ok else list_response.text,
            },
        )

    except Exception as exc:
        logger.exception("Seeding failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    seed_gallery()
