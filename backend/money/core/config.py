"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env during development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or blank.

    Returns
    -------
    int
        Parsed value.

    Raises
    ------
    ValueError
        If the variable is set to something that is not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable (see :func:`env_int`)."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return float(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints. Empty so the gateway stage
        maps directly onto ``/auth/...``.
    TOKEN_AUDIENCE, TOKEN_ISSUER, TOKEN_SCOPE: str
        Claims stamped on every access token. ``TOKEN_ISSUER`` is also the
        base URL of the ``/auth/jwks`` document used during verification.
    TOKEN_PRIVATE_SECRET, TOKEN_PUBLIC_SECRET, KID_SECRET: str
        Names of the secrets holding the RSA keypair and the active key id.
    ACCESS_TOKEN_DURATION, REFRESH_TOKEN_DURATION: int
        Token lifetimes in seconds.
    JWT_*: various
        Flask-JWT-Extended settings derived from the token settings above.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Location of the invalid-token cache.
    CACHE_RETRY_ATTEMPTS, CACHE_RETRY_BACKOFF: int, float
        Bounded retry policy for cache calls (attempts after the first one,
        base backoff in seconds doubled on every retry).
    AWS_REGION, SECRETS_TIMEOUT, SECRETS_MAX_ATTEMPTS: str, float, int
        Secrets Manager client settings.
    JWKS_RESOLUTION: str
        ``"remote"`` fetches ``{TOKEN_ISSUER}/auth/jwks`` over HTTP;
        ``"local"`` resolves keys in-process from the secret store.
    SECRETS_BACKEND, INVALID_TOKEN_STORE: str
        Adapter selectors (``"aws"``/``"redis"`` or ``"memory"``).
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = ""

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # Token claims and key material
    TOKEN_AUDIENCE = os.getenv("TOKEN_AUDIENCE", "https://localhost:3000")
    TOKEN_ISSUER = os.getenv(
        "TOKEN_ISSUER", "https://38qslpe8d9.execute-api.us-east-1.amazonaws.com/staging"
    )
    TOKEN_SCOPE = os.getenv("TOKEN_SCOPE", "read write")
    TOKEN_PRIVATE_SECRET = os.getenv("TOKEN_PRIVATE_SECRET", "staging/money/rsa/private")
    TOKEN_PUBLIC_SECRET = os.getenv("TOKEN_PUBLIC_SECRET", "staging/money/rsa/public")
    KID_SECRET = os.getenv("KID_SECRET", "staging/money/rsa/kid")
    ACCESS_TOKEN_DURATION = env_int("ACCESS_TOKEN_DURATION", 300)
    REFRESH_TOKEN_DURATION = env_int("REFRESH_TOKEN_DURATION", 2592000)

    # Flask-JWT-Extended (keys come from the loaders in money.infra.jwt)
    JWT_ALGORITHM = "RS256"
    JWT_DECODE_ALGORITHMS = ["RS256"]
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ENCODE_ISSUER = TOKEN_ISSUER
    JWT_DECODE_ISSUER = TOKEN_ISSUER
    JWT_ENCODE_AUDIENCE = TOKEN_AUDIENCE
    JWT_DECODE_AUDIENCE = TOKEN_AUDIENCE
    JWT_ENCODE_NBF = True
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=ACCESS_TOKEN_DURATION)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(seconds=REFRESH_TOKEN_DURATION)

    # Login throttling (Flask-Limiter) and proxy headers
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_HOPS = env_int("PROXYFIX_HOPS", 1)

    # Cookies
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", True)
    AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "None")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Invalid-token cache
    INVALID_TOKEN_STORE = os.getenv("INVALID_TOKEN_STORE", "redis")
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_SOCKET_TIMEOUT = env_float("REDIS_SOCKET_TIMEOUT", 2.0)
    CACHE_RETRY_ATTEMPTS = env_int("CACHE_RETRY_ATTEMPTS", 3)
    CACHE_RETRY_BACKOFF = env_float("CACHE_RETRY_BACKOFF", 2.0)

    # Secret store
    SECRETS_BACKEND = os.getenv("SECRETS_BACKEND", "aws")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    SECRETS_TIMEOUT = env_float("SECRETS_TIMEOUT", 3.0)
    SECRETS_MAX_ATTEMPTS = env_int("SECRETS_MAX_ATTEMPTS", 3)

    # JWKS resolution
    JWKS_RESOLUTION = os.getenv("JWKS_RESOLUTION", "remote")
    JWKS_TIMEOUT = env_float("JWKS_TIMEOUT", 3.0)
    JWKS_MAX_RETRIES = env_int("JWKS_MAX_RETRIES", 3)
    JWKS_MISS_TTL = env_float("JWKS_MISS_TTL", 30.0)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Resolves signing keys in-process so a single local server does not call
    itself over HTTP.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    JWKS_RESOLUTION = os.getenv("JWKS_RESOLUTION", "local")
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses in-memory secrets and cache adapters; tests inject their own.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    TOKEN_ISSUER = "https://money.test"
    TOKEN_AUDIENCE = "https://app.money.test"
    JWT_ENCODE_ISSUER = JWT_DECODE_ISSUER = TOKEN_ISSUER
    JWT_ENCODE_AUDIENCE = JWT_DECODE_AUDIENCE = TOKEN_AUDIENCE
    SECRETS_BACKEND = "memory"
    INVALID_TOKEN_STORE = "memory"
    JWKS_RESOLUTION = "local"
    CACHE_RETRY_BACKOFF = 0.0
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
