"""AWS Lambda entry point for the API Gateway TOKEN authorizer.

The gateway sends ``{"type": "TOKEN", "authorizationToken", "methodArn"}``
and expects a policy document back. Raising an exception whose message is
exactly ``"Unauthorized"`` makes the gateway answer 401 without a policy.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask

from money.container import get_container
from money.core.logger import bound_request_id
from money.factory import create_app
from money.services._shared.errors import UnauthorizedError
from money.services.authorizer.service import REASON_INTERNAL

log = logging.getLogger(__name__)

_app: Flask | None = None


class GatewayUnauthorized(Exception):
    """Signals API Gateway to reply 401."""

    def __init__(self) -> None:
        super().__init__("Unauthorized")


def get_app() -> Flask:
    """Build the Flask app once per Lambda container."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def set_app(app: Flask | None) -> None:
    """Replace the cached app (tests)."""
    global _app
    _app = app


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Evaluate a TOKEN authorizer event.

    :param event: API Gateway authorizer event.
    :param context: Lambda context; its ``aws_request_id`` tags the logs.
    :returns: ``{principalId, policyDocument, context?}``.
    :raises GatewayUnauthorized: When the token is structurally invalid.
    """
    app = get_app()
    with bound_request_id(getattr(context, "aws_request_id", None)), app.app_context():
        service = get_container(app).authorizer_service()
        try:
            return service.authorize_event(event)
        except UnauthorizedError as exc:
            raise GatewayUnauthorized() from exc
        except Exception:
            # The gateway must still receive a policy
            log.exception("authorizer.unhandled_error")
            return service.deny_all(str(event.get("methodArn") or ""), REASON_INTERNAL).to_dict()
