"""
Lambda handler responsible for gallery media upload.
"""

import asyncio
import json
import os
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError as PydanticValidationError

from core.models.gallery import MediaKind
from core.models.results import Failure
from core.utils.constants import ENV_GALLERY_VIDEO_UPLOADS_ENABLED
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import MediaUploadRequest, MediaUploadResponse
from .service import IngestionPipeline

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


def video_uploads_enabled() -> bool:
    return os.getenv(ENV_GALLERY_VIDEO_UPLOADS_ENABLED, "false").strip().lower() in ("1", "true", "yes")


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle gallery media upload requests.

    The handler decodes base64-encoded media, validates the payload, runs
    the ingestion pipeline and returns the created gallery item.

    Expected API Gateway event structure:
    {
        "body": "{...}",           # JSON: file, media_kind, title, featured, uploaded_by
        "isBase64Encoded": false
    }

    Args:
        event: API Gateway Lambda proxy event containing the upload payload
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response containing the created item
    """
    request_id = getattr(context, "aws_request_id", None)
    logger.info(
        "Received media upload request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
            "function_name": getattr(context, "function_name", None),
        },
    )

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body", request_id=request_id)

    try:
        request = validate_request(MediaUploadRequest, body)
    except PydanticValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": sanitize_validation_errors(exc.errors())},
        )
        return ResponseBuilder.validation_error(
            message="Invalid request params",
            details={"errors": sanitize_validation_errors(exc.errors())},
            request_id=request_id,
        )

    if request.media_kind is MediaKind.VIDEO and not video_uploads_enabled():
        logger.warning("Video upload rejected: video uploads are disabled")
        return ResponseBuilder.forbidden(
            "Video uploads are currently disabled",
            request_id=request_id,
        )

    pipeline = IngestionPipeline()
    result = asyncio.run(
        pipeline.ingest(
            request.media_kind,
            request.decoded_file(),
            request.ingest_metadata(),
            on_progress=lambda percent, label: logger.debug(
                "Ingest progress", extra={"percent": percent, "stage": label}
            ),
        )
    )

    if isinstance(result, Failure):
        return ResponseBuilder.from_failure(result, request_id=request_id)

    metrics.add_metric(name="GalleryItemsIngested", unit=MetricUnit.Count, value=1)

    response = MediaUploadResponse(
        item=result.value,
        message="Media uploaded successfully",
    )

    return ResponseBuilder.created(response.model_dump(mode="json"), request_id=request_id)
