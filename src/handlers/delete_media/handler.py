"""
Lambda handler responsible for retiring a gallery item.
"""

import asyncio
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.results import Failure
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import DeleteMediaRequest, DeleteMediaResponse
from .service import RetentionManager

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle gallery item deletion requests.

    This function:
    - Extracts the item identifier from API Gateway path parameters
    - Delegates retirement to the service layer
    - Translates failures into HTTP responses

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    request_id = getattr(context, "aws_request_id", None)
    logger.info(
        "Received media delete request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
        },
    )

    path_params = event.get("pathParameters") or {}

    try:
        request = validate_request(
            DeleteMediaRequest,
            {"item_id": path_params.get("item_id")},
        )
    except ValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": sanitize_validation_errors(exc.errors())},
        )
        return ResponseBuilder.validation_error(
            message="Invalid request payload",
            details={"errors": sanitize_validation_errors(exc.errors())},
            request_id=request_id,
        )

    result = asyncio.run(RetentionManager().retire(request.item_id))

    if isinstance(result, Failure):
        return ResponseBuilder.from_failure(result, request_id=request_id)

    metrics.add_metric(name="GalleryItemsRetired", unit=MetricUnit.Count, value=1)

    response = DeleteMediaResponse(
        item_id=result.value.item_id,
        message="Media deleted successfully",
        deleted_at=result.value.retired_at,
        removed_keys=result.value.removed_keys,
    )

    return ResponseBuilder.ok(response.model_dump(), request_id=request_id)
