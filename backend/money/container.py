"""Composition root: build adapters and services from configuration."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from money.services._shared.base import ServiceContext
from money.services._shared.ports import (
    InMemoryInvalidTokenCache,
    InMemorySecretProvider,
    InvalidTokenCache,
    KeyResolver,
    SecretProvider,
    TokenProvider,
)
from money.services.auth import AuthService
from money.services.authorizer import AuthorizerService
from money.services.keys import SigningKeyService, generate_key_material
from money.services.tokens import TokenSettings

log = logging.getLogger(__name__)

EXTENSION_KEY = "money"


class BootstrapError(RuntimeError):
    """Startup could not build a dependency (missing setting, unreachable backend)."""


@dataclass(slots=True)
class Container:
    """
    Process-wide dependencies shared by every request.

    :ivar secrets: Secret store adapter.
    :ivar invalid_tokens: Invalid-token cache adapter.
    :ivar signing_keys: Keypair and kid source.
    :ivar key_resolver: Verification key lookup.
    :ivar tokens: Token provider.
    :ivar settings: Token lifetimes and scope.
    """

    secrets: SecretProvider
    invalid_tokens: InvalidTokenCache
    signing_keys: SigningKeyService
    key_resolver: KeyResolver
    tokens: TokenProvider
    settings: TokenSettings

    def auth_service(self, ctx: ServiceContext | None = None) -> AuthService:
        return AuthService(
            token_provider=self.tokens,
            invalid_tokens=self.invalid_tokens,
            settings=self.settings,
            ctx=ctx,
        )

    def authorizer_service(self, ctx: ServiceContext | None = None) -> AuthorizerService:
        return AuthorizerService(
            token_provider=self.tokens, invalid_tokens=self.invalid_tokens, ctx=ctx
        )


# --------------------------------------------------------------------------- #
# Builders
# --------------------------------------------------------------------------- #


def build_secrets(config: Mapping[str, Any]) -> SecretProvider:
    """Secret provider selected by ``SECRETS_BACKEND``."""
    backend = str(config.get("SECRETS_BACKEND", "aws")).lower()
    if backend == "memory":
        # Throwaway keypair so a local server can sign without a secret store
        private_pem, public_pem, kid = generate_key_material()
        log.warning("bootstrap.ephemeral_keys", extra={"kid": kid})
        return InMemorySecretProvider(
            {
                config["TOKEN_PRIVATE_SECRET"]: private_pem,
                config["TOKEN_PUBLIC_SECRET"]: public_pem,
                config["KID_SECRET"]: kid,
            }
        )
    if backend == "aws":
        from money.infra.secrets.aws_secret_provider import AWSSecretProvider, build_client

        return AWSSecretProvider(
            build_client(
                region=str(config.get("AWS_REGION", "us-east-1")),
                timeout=float(config.get("SECRETS_TIMEOUT", 3.0)),
                max_attempts=int(config.get("SECRETS_MAX_ATTEMPTS", 3)),
            )
        )
    raise BootstrapError(f"Unknown SECRETS_BACKEND {backend!r}")


def build_invalid_token_cache(config: Mapping[str, Any]) -> InvalidTokenCache:
    """Invalid-token cache selected by ``INVALID_TOKEN_STORE``."""
    store = str(config.get("INVALID_TOKEN_STORE", "redis")).lower()
    if store == "memory":
        return InMemoryInvalidTokenCache()
    if store != "redis":
        raise BootstrapError(f"Unknown INVALID_TOKEN_STORE {store!r}")

    redis_url = config.get("REDIS_URL")
    if not redis_url:
        raise BootstrapError("REDIS_URL is required when INVALID_TOKEN_STORE is 'redis'")

    from money.infra.redis.redis_invalid_token_cache import RedisInvalidTokenCache

    timeout = float(config.get("REDIS_SOCKET_TIMEOUT", 2.0))
    client = redis.Redis.from_url(
        redis_url, socket_timeout=timeout, socket_connect_timeout=timeout
    )
    try:
        client.ping()
    except RedisError as exc:
        raise BootstrapError(f"Failed to connect to Redis at {redis_url!r}") from exc
    return RedisInvalidTokenCache(
        client,
        retries=int(config.get("CACHE_RETRY_ATTEMPTS", 3)),
        backoff=float(config.get("CACHE_RETRY_BACKOFF", 2.0)),
    )


def build_key_resolver(
    config: Mapping[str, Any], signing_keys: SigningKeyService
) -> KeyResolver:
    """Key resolver selected by ``JWKS_RESOLUTION``."""
    mode = str(config.get("JWKS_RESOLUTION", "remote")).lower()
    if mode == "local":
        from money.infra.jwks.local_key_resolver import LocalKeyResolver

        return LocalKeyResolver(signing_keys)
    if mode == "remote":
        from money.infra.jwks.remote_key_resolver import RemoteKeyResolver

        return RemoteKeyResolver(
            timeout=float(config.get("JWKS_TIMEOUT", 3.0)),
            max_retries=int(config.get("JWKS_MAX_RETRIES", 3)),
            miss_ttl=float(config.get("JWKS_MISS_TTL", 30.0)),
        )
    raise BootstrapError(f"Unknown JWKS_RESOLUTION {mode!r}")


def build_container(config: Mapping[str, Any], **overrides: Any) -> Container:
    """
    Build every process-wide dependency from ``config``.

    Keyword overrides replace the adapter of the same name (``secrets``,
    ``invalid_tokens``, ``key_resolver``, ``tokens``); tests use them to
    plug in fakes.

    :raises BootstrapError: On missing settings or unreachable backends.
    """
    from money.infra.jwt.flask_jwt_token_provider import JWTTokenProvider

    for key in ("TOKEN_ISSUER", "TOKEN_AUDIENCE", "TOKEN_PRIVATE_SECRET", "KID_SECRET"):
        if not config.get(key):
            raise BootstrapError(f"{key} must be configured")

    secrets = overrides.get("secrets") or build_secrets(config)
    invalid_tokens = overrides.get("invalid_tokens") or build_invalid_token_cache(config)
    signing_keys = SigningKeyService.from_config(secrets, config)
    key_resolver = overrides.get("key_resolver") or build_key_resolver(config, signing_keys)
    tokens = overrides.get("tokens") or JWTTokenProvider(
        signing_keys=signing_keys,
        key_resolver=key_resolver,
        issuer=str(config["TOKEN_ISSUER"]),
    )
    return Container(
        secrets=secrets,
        invalid_tokens=invalid_tokens,
        signing_keys=signing_keys,
        key_resolver=key_resolver,
        tokens=tokens,
        settings=TokenSettings.from_config(config),
    )


# --------------------------------------------------------------------------- #
# Flask integration
# --------------------------------------------------------------------------- #


def init_app(app: Flask, container: Container | None = None) -> Container:
    """Attach ``container`` (or a freshly built one) to ``app``."""
    container = container or build_container(app.config)
    app.extensions[EXTENSION_KEY] = container
    return container


def get_container(app: Flask | None = None) -> Container:
    """Return the container of ``app`` or of the current app."""
    target = app or current_app
    try:
        return target.extensions[EXTENSION_KEY]
    except KeyError:
        raise RuntimeError("Container is not initialized. Call init_app() first.") from None
