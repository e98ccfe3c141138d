"""Shared API helpers for cookies, error translation and timing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from werkzeug.http import dump_cookie

from money.container import Container, get_container
from money.core.errors import APIError
from money.core.logger import ensure_request_id
from money.schemas import TokenResponseSchema
from money.services._shared.base import BaseService, ServiceContext
from money.services._shared.errors import ServiceError
from money.services.auth import SessionOut
from money.services.tokens import AuthToken

F = TypeVar("F", bound=Callable[..., Any])

ACCESS_COOKIE = "AccessToken"
REFRESH_COOKIE = "RefreshToken"

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

token_response_schema = TokenResponseSchema()


def container() -> Container:
    """Return the dependency container of the current app."""

    return get_container()


def service_context() -> ServiceContext:
    """Build the request-scoped context handed to services."""

    return ServiceContext(request_id=ensure_request_id(), client_ip=request.remote_addr)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def empty_response(*, status: int = 200) -> Response:
    """Return a response without a body."""

    return Response(status=status)


# ------------------------------ cookies ------------------------------------


def _cookie(name: str, value: str, expires: datetime) -> str:
    config = current_app.config
    return dump_cookie(
        name,
        value,
        expires=expires,
        path="/",
        secure=bool(config.get("AUTH_COOKIE_SECURE", True)),
        httponly=True,
        samesite=config.get("AUTH_COOKIE_SAMESITE", "None"),
    )


def token_cookie_headers(access: AuthToken, refresh: AuthToken) -> list[tuple[str, str]]:
    """``Set-Cookie`` headers carrying a fresh token pair."""

    return [
        ("Set-Cookie", _cookie(ACCESS_COOKIE, access.value, access.expires_at)),
        ("Set-Cookie", _cookie(REFRESH_COOKIE, refresh.value, refresh.expires_at)),
    ]


def expired_cookie_headers() -> list[tuple[str, str]]:
    """``Set-Cookie`` headers that make the browser drop both token cookies."""

    return [
        ("Set-Cookie", _cookie(ACCESS_COOKIE, "", EPOCH)),
        ("Set-Cookie", _cookie(REFRESH_COOKIE, "", EPOCH)),
    ]


def with_headers(response: Response, headers: list[tuple[str, str]]) -> Response:
    for name, value in headers:
        response.headers.add(name, value)
    return response


def session_response(out: SessionOut) -> Response:
    """Login/refresh answer: token cookies plus the access token in the body."""

    body = {
        "data": token_response_schema.dump(
            {"access_token": out.tokens.access.value, "expires_in": out.expires_in}
        )
    }
    return with_headers(
        json_response(body), token_cookie_headers(out.tokens.access, out.tokens.refresh)
    )


# ------------------------------ errors -------------------------------------


@contextmanager
def translated(
    service: BaseService, *, on_client_error: list[tuple[str, str]] | None = None
) -> Iterator[None]:
    """Re-raise service errors as API errors.

    :param service: Service whose ``translate_exceptions`` is applied.
    :param on_client_error: Headers added to 4xx answers (e.g. cookie
        removal when a refresh token is rejected).
    """

    try:
        yield
    except ServiceError as exc:
        api_exc = service.translate_exceptions(exc)
        if on_client_error and isinstance(api_exc, APIError) and api_exc.status_code < 500:
            api_exc.headers.extend(on_client_error)
        raise api_exc from exc


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
