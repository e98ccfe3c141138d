"""Authentication endpoints: signup, login, refresh, logout and JWKS."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address

from money.api.deps import (
    REFRESH_COOKIE,
    container,
    empty_response,
    expired_cookie_headers,
    json_response,
    service_context,
    session_response,
    timing,
    translated,
    with_headers,
)
from money.core.errors import ServiceUnavailable
from money.core.extensions import limiter
from money.schemas import LoginSchema, SignupSchema
from money.services._shared.errors import InfrastructureError
from money.services.auth import LoginIn, LogoutIn, RefreshIn, SignupIn

log = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_schema = LoginSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _login_rate_key() -> str:
    """Throttle per client address and attempted email."""

    body = request.get_json(silent=True)
    email = body.get("email") if isinstance(body, dict) else None
    email = str(email or "").strip().lower()
    return f"{get_remote_address()}:{email}"


@bp.post("/signup")
@timing
def signup():
    """Create an account; 201 with an empty body."""

    data = signup_schema.load(request.get_json(silent=True) or {})
    service = container().auth_service(service_context())
    with translated(service):
        service.signup(SignupIn(**data))
    return empty_response(status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit, key_func=_login_rate_key)
@timing
def login():
    """Authenticate credentials and set the token cookies."""

    data = login_schema.load(request.get_json(silent=True) or {})
    service = container().auth_service(service_context())
    with translated(service):
        out = service.login(LoginIn(**data))
    return session_response(out)


@bp.post("/token")
@timing
def refresh():
    """Rotate the refresh token from the ``RefreshToken`` cookie."""

    token = request.cookies.get(REFRESH_COOKIE, "")
    service = container().auth_service(service_context())
    with translated(service, on_client_error=expired_cookie_headers()):
        out = service.refresh(RefreshIn(refresh_token=token))
    return session_response(out)


@bp.post("/logout")
@timing
def logout():
    """Invalidate the session of the ``RefreshToken`` cookie and drop both cookies."""

    token = request.cookies.get(REFRESH_COOKIE, "")
    service = container().auth_service(service_context())
    with translated(service, on_client_error=expired_cookie_headers()):
        service.logout(LogoutIn(refresh_token=token))
    return with_headers(empty_response(), expired_cookie_headers())


@bp.get("/jwks")
@timing
def jwks():
    """Publish the active public signing key. No authentication."""

    try:
        document = container().signing_keys.jwks()
    except InfrastructureError as exc:
        log.error("jwks.unavailable", extra={"reason": str(exc)})
        raise ServiceUnavailable() from exc
    response = json_response(document)
    response.cache_control.public = True
    response.cache_control.max_age = int(current_app.config.get("JWKS_CACHE_MAX_AGE", 300))
    return response
