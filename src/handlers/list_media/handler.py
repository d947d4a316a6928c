"""
Lambda handler responsible for listing active gallery items.
"""

import asyncio
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.results import Failure
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import ListMediaRequest, ListMediaResponse
from .service import ListService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle requests to list the gallery.

    Supports:
    - Filtering by media kind (``?media_kind=image``)
    """
    request_id = getattr(context, "aws_request_id", None)
    params = event.get("queryStringParameters") or {}

    try:
        request = validate_request(ListMediaRequest, params)
    except ValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": sanitize_validation_errors(exc.errors())},
        )
        return ResponseBuilder.validation_error(
            message="Invalid query parameters",
            details={"errors": sanitize_validation_errors(exc.errors())},
            request_id=request_id,
        )

    result = asyncio.run(ListService().list_active(request.media_kind))

    if isinstance(result, Failure):
        return ResponseBuilder.from_failure(result, request_id=request_id)

    response = ListMediaResponse(items=result.value, total_count=len(result.value))
    return ResponseBuilder.ok(response.model_dump(mode="json"), request_id=request_id)
