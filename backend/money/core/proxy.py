"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Trust one hop of ``X-Forwarded-*`` headers when ``USE_PROXYFIX`` is set.

    Behind the API gateway the client address and scheme only arrive in
    forwarded headers; the login rate limit keys on that address.
    """
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    if app.config.get("USE_PROXYFIX", True) and hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)
