"""RFC 7807 (``application/problem+json``) error responses.

Services raise framework-free errors; ``BaseService.translate_exceptions``
turns them into :class:`APIError`. Everything else that escapes a view
(werkzeug HTTP errors, schema failures, database outages) is rendered here
with the same body shape and a generic message.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from money.core.logger import ensure_request_id

log = logging.getLogger(__name__)


def status_code_name(status: int) -> str:
    """Stable snake_case code for ``status`` (``429`` -> ``too_many_requests``)."""
    try:
        return HTTPStatus(status).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "error"


def problem(
    status: int, code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Problem details body; always carries the request id."""
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if has_request_context() else None,
        "code": code,
    }
    if details:
        body["details"] = details
    body["request_id"] = ensure_request_id()
    return body


def problem_response(body: dict[str, Any]) -> Response:
    resp = jsonify(body)
    resp.status_code = body["status"]
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    An error with a ready HTTP rendering.

    :param message: Client-facing ``detail``.
    :param status_code: HTTP status.
    :param code: Machine-readable code.
    :param details: Optional structured payload.
    :param headers: Extra response headers, e.g. ``Set-Cookie`` lines that
        expire the token cookies of a rejected refresh.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
        headers: list[tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}
        self.headers = headers or []

    def to_problem(self) -> dict[str, Any]:
        return problem(self.status_code, self.code, self.message, self.details or None)


class BadRequest(APIError):
    """400: invalid body, rejected credentials or an unparseable token."""

    def __init__(self, message: str = "Bad request", code: str = "bad_request") -> None:
        super().__init__(message, status_code=HTTPStatus.BAD_REQUEST, code=code)


class Unauthorized(APIError):
    """401: a token was rejected."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


class ServiceUnavailable(APIError):
    """503: secret store, invalid-token cache or key set unreachable."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            message, status_code=HTTPStatus.SERVICE_UNAVAILABLE, code="service_unavailable"
        )


# Library exceptions rendered with a fixed, generic problem.
_GENERIC: tuple[tuple[type[Exception], int, str], ...] = (
    (IntegrityError, HTTPStatus.CONFLICT, "Resource conflict"),
    (OperationalError, HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
    (Exception, HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error"),
)


def init_app(app: Flask) -> None:
    """Register the problem+json handlers; 5xx are logged with a traceback."""

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        level = log.error if err.status_code >= 500 else log.warning
        level("api.error", extra={"reason": f"{err.code}: {err.message}"})
        response = problem_response(err.to_problem())
        for name, value in err.headers:
            response.headers.add(name, value)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = status_code_name(status)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        log.warning("http.error", extra={"reason": f"{code}: {message}"})
        return problem_response(problem(status, code, message))

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        log.warning("validation.error", extra={"reason": str(err.messages)})
        return problem_response(
            problem(
                HTTPStatus.BAD_REQUEST,
                "validation_error",
                "Validation failed",
                {"errors": err.messages},
            )
        )

    for exc_type, status, message in _GENERIC:
        app.register_error_handler(exc_type, _generic_handler(status, message))


def _generic_handler(status: int, message: str):
    def handler(err: Exception):
        # Never leak internal details
        log.error("unhandled.error", exc_info=err, extra={"reason": type(err).__name__})
        return problem_response(problem(status, status_code_name(status), message))

    return handler
