import json
from http import HTTPStatus
from types import SimpleNamespace
from typing import Any

from core.models.errors import NotFoundError, QuotaExceededError
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder

CONTEXT = SimpleNamespace(aws_request_id="req-1")


def make_handler(exc: Exception | None = None):
    @api_gateway_handler
    def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
        if exc is not None:
            raise exc
        return ResponseBuilder.ok({"done": True})

    return handler


class TestApiGatewayHandler:
    def test_success_passes_through(self) -> None:
        resp = make_handler()({"httpMethod": "GET"}, CONTEXT)

        assert resp["statusCode"] == HTTPStatus.OK
        assert json.loads(resp["body"]) == {"done": True}

    def test_options_preflight(self) -> None:
        resp = make_handler(RuntimeError("never raised"))({"httpMethod": "OPTIONS"}, CONTEXT)

        assert resp["statusCode"] == HTTPStatus.NO_CONTENT
        assert resp["body"] == ""
        assert "Access-Control-Allow-Origin" in resp["headers"]

    def test_gallery_errors_use_their_status(self) -> None:
        resp = make_handler(QuotaExceededError(current=20, limit=20))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.CONFLICT
        assert body["error"] == "QUOTA_EXCEEDED"
        assert body["request_id"] == "req-1"

    def test_not_found_error(self) -> None:
        resp = make_handler(NotFoundError(message="Gallery item not found"))({}, CONTEXT)

        assert resp["statusCode"] == HTTPStatus.NOT_FOUND

    def test_value_error_is_bad_request_with_friendly_message(self) -> None:
        resp = make_handler(ValueError("Invalid media kind"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert body["message"] == "Invalid media kind"

    def test_value_error_with_technical_message_is_hidden(self) -> None:
        resp = make_handler(ValueError("could not convert string to float: 'x'"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert body["message"].startswith("The provided data is invalid")

    def test_unexpected_error_is_internal(self) -> None:
        resp = make_handler(RuntimeError("kaboom"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.INTERNAL_SERVER_ERROR
        assert "kaboom" not in body["message"]

    def test_missing_key_is_bad_request(self) -> None:
        resp = make_handler(KeyError("gallery_id"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert body["message"].startswith("A required field is missing")

    def test_type_error_is_bad_request(self) -> None:
        resp = make_handler(TypeError("unsupported operand"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert body["message"] == "The data format is incorrect. Please check the request format."

    def test_os_error_is_internal(self) -> None:
        resp = make_handler(ConnectionResetError("peer reset"))({}, CONTEXT)
        body = json.loads(resp["body"])

        assert resp["statusCode"] == HTTPStatus.INTERNAL_SERVER_ERROR
        assert "peer reset" not in body["message"]
