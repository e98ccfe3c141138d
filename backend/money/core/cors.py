"""CORS configuration helper for the auth endpoints."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for auth endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. Tokens travel in cookies, so credentials are only allowed
        for an explicit origin list; a blank or ``"*"`` value allows any
        origin without credentials.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "").rstrip("/")

    CORS(
        app,
        resources={rf"{prefix}/auth/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
