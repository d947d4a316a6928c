"""
Lambda handler responsible for editing a gallery item.
"""

import asyncio
import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.results import Failure
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import UpdateMediaRequest, UpdateMediaResponse
from .service import UpdateService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle gallery item edit requests (title, featured, order_index).

    Args:
        event: API Gateway Lambda proxy event; item id in path parameters
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response containing the updated item
    """
    request_id = getattr(context, "aws_request_id", None)
    path_params = event.get("pathParameters") or {}

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body", request_id=request_id)

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Invalid JSON body", request_id=request_id)

    try:
        request = validate_request(
            UpdateMediaRequest,
            {"item_id": path_params.get("item_id"), "patch": body},
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

    result = asyncio.run(UpdateService().update(request.item_id, request.patch))

    if isinstance(result, Failure):
        return ResponseBuilder.from_failure(result, request_id=request_id)

    response = UpdateMediaResponse(item=result.value, message="Media updated successfully")
    return ResponseBuilder.ok(response.model_dump(mode="json"), request_id=request_id)
