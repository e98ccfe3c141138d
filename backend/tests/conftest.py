"""Pytest fixtures: app with in-memory adapters and a fresh SQLite database.

Every test that asks for ``app`` gets its own Flask application bound to an
in-memory SQLite database (one connection, ``StaticPool``), in-memory
secrets seeded with a session-wide RSA keypair, and an in-memory
invalid-token cache.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest
from flask import Config

from money.container import Container, build_container
from money.core.config import TestingConfig
from money.core.extensions import db as _db
from money.factory import create_app
from money.services._shared.ports import InMemoryInvalidTokenCache, InMemorySecretProvider
from money.services.keys import generate_key_material
from tests.helpers.tokens import KeyMaterial


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Resolves signing keys in-process; no HTTP self-fetch.
    - Keeps secure cookie flags on so tests see production headers.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    AUTH_COOKIE_SECURE = True


def _config_mapping() -> Config:
    cfg = Config(root_path=os.getcwd())
    cfg.from_object(TestConfig)
    return cfg


@pytest.fixture(scope="session")
def rsa_keys() -> KeyMaterial:
    """One RSA keypair for the whole run; generation is slow."""
    private_pem, public_pem, kid = generate_key_material()
    return KeyMaterial(private_pem=private_pem, public_pem=public_pem, kid=kid)


@pytest.fixture()
def secrets(rsa_keys: KeyMaterial) -> InMemorySecretProvider:
    """Secret store holding the test keypair under the configured names."""
    return InMemorySecretProvider(
        {
            TestConfig.TOKEN_PRIVATE_SECRET: rsa_keys.private_pem,
            TestConfig.TOKEN_PUBLIC_SECRET: rsa_keys.public_pem,
            TestConfig.KID_SECRET: rsa_keys.kid,
        }
    )


@pytest.fixture()
def invalid_tokens() -> InMemoryInvalidTokenCache:
    return InMemoryInvalidTokenCache()


@pytest.fixture()
def container(secrets, invalid_tokens) -> Container:
    """Dependencies wired like production, with in-memory adapters."""
    return build_container(_config_mapping(), secrets=secrets, invalid_tokens=invalid_tokens)


@pytest.fixture()
def app(container):
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application with :class:`TestConfig`, an active app context and the
        schema created.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    application = create_app(TestConfig, container=container, instance_relative_config=False)
    application.logger.setLevel("WARNING")
    with application.app_context():
        _db.create_all()
        yield application
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(app):
    """Flask-SQLAlchemy session of the test app."""
    return _db.session


@pytest.fixture()
def client(app):
    """Test client without a cookie jar; tests send ``Cookie`` headers explicitly."""
    return app.test_client(use_cookies=False)


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """
    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory


# -- Hook up Factory Boy to the Flask-SQLAlchemy session ------------------------
@pytest.fixture(autouse=True)
def _factories_session():
    """Wire Factory Boy's session helper to the app's scoped session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(_db.session)
    yield


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    import fakeredis

    r = fakeredis.FakeRedis()
    yield r
    r.flushall()
