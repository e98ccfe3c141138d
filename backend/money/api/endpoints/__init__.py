"""Endpoint blueprints and their mount points."""

from __future__ import annotations

from flask import Blueprint

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .auth import bp as auth_bp  # noqa: E402
from .authorizer import bp as authorizer_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_API_BASE_PREFIX)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /health
    (auth_bp, "/auth"),  # -> /auth/signup, /auth/login, ...
    (authorizer_bp, "/auth"),  # -> /auth/authorize
]
