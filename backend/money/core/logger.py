"""JSON logging for the HTTP app and the Lambda authorizer.

Every record carries a ``request_id``: the inbound correlation header inside
a Flask request, the Lambda ``aws_request_id`` inside an authorizer
invocation, ``None`` otherwise. Token values never reach the output; anything
shaped like a JWT is masked before formatting.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")
SERVICE_NAME = "money-auth"

# Only these ``extra=`` attributes are emitted.
EXTRA_KEYS = (
    "endpoint",
    "elapsed_ms",
    "username",
    "client_ip",
    "reason",
    "attempt",
    "kid",
    "principal",
)

REDACTED = "[redacted]"
_JWT_RE = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]*")

_invocation_id: ContextVar[str | None] = ContextVar("invocation_id", default=None)


def redact(value: Any) -> Any:
    """Mask JWT-shaped substrings of ``value`` when it is a string."""

    if isinstance(value, str):
        return _JWT_RE.sub(REDACTED, value)
    return value


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the service name and request id."""

    def __init__(self, service: str = SERVICE_NAME) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "service": self.service,
            "name": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = redact(getattr(record, key))
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id()
        return True


def current_request_id() -> str | None:
    """Request id of the running Flask request or Lambda invocation, if any."""

    if has_request_context():
        return ensure_request_id()
    return _invocation_id.get()


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if has_request_context():
        if hasattr(g, "request_id"):
            return g.request_id  # type: ignore[return-value]
        for header in CORRELATION_HEADERS:
            value = request.headers.get(header)
            if value:
                g.request_id = value
                return value
        g.request_id = _invocation_id.get() or str(uuid4())
        return g.request_id
    return _invocation_id.get() or str(uuid4())


@contextmanager
def bound_request_id(request_id: str | None) -> Iterator[None]:
    """Use ``request_id`` for records logged outside a Flask request."""

    token = _invocation_id.set(request_id)
    try:
        yield
    finally:
        _invocation_id.reset(token)


def configure_logging(level: str | int = "INFO") -> None:
    """Send the root logger to stdout as JSON at ``level``."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed the request id per request and echo it on responses."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "bound_request_id",
    "configure_logging",
    "current_request_id",
    "ensure_request_id",
    "init_app",
    "redact",
]
