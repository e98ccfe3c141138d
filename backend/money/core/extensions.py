"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from pathlib import Path

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Constraint names match the ones written by the migrations
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(directory=str(MIGRATIONS_DIR), render_as_batch=True)
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and rate limiting.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`money.models` package to ensure SQLAlchemy metadata is ready for
        migrations, and installs the RS256 key loaders on the JWT manager.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from money import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    from money.infra.jwt.flask_jwt_token_provider import register_key_loaders

    register_key_loaders(jwt)
