"""HTTP surface: auth endpoints, the authorizer endpoint and ``/health``."""

from __future__ import annotations

from flask import Flask


def mount_path(base_prefix: str, rel_prefix: str) -> str:
    """Join ``API_BASE_PREFIX`` and a blueprint prefix into one URL prefix.

    >>> mount_path("/prod/", "/auth")
    '/prod/auth'
    >>> mount_path("", "")
    '/'
    """

    segments = [s for s in (base_prefix.strip("/"), rel_prefix.strip("/")) if s]
    return "/" + "/".join(segments)


def init_app(app: Flask) -> None:
    """Register every blueprint of ``REGISTRY`` under ``API_BASE_PREFIX``.

    The gateway stage usually supplies the outer path segment, so the prefix
    is empty unless the app is served without one.
    """

    from money.api.endpoints import REGISTRY

    base = app.config.get("API_BASE_PREFIX", "")
    for bp, rel_prefix in REGISTRY:
        app.register_blueprint(bp, url_prefix=mount_path(base, rel_prefix))


__all__ = ["init_app", "mount_path"]
