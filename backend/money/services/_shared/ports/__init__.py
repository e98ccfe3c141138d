"""
money.services._shared.ports
============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token signing, key lookup, secret access and token invalidation.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider` (sign/verify RS256 tokens).
- :mod:`key_resolver`:
    Defines :class:`~.KeyResolver` (``kid`` -> RSA public key).
- :mod:`secret_provider`:
    Defines :class:`~.SecretProvider` (named secret lookup).
- :mod:`invalid_token_cache`:
    Defines :class:`~.InvalidTokenCache` and :class:`~.InvalidToken`.

Concrete adapters (Flask-JWT-Extended, requests, boto3, Redis) implement
these interfaces under ``money.infra``. Each module also ships an in-memory
implementation used by tests and local development.
"""

from __future__ import annotations

from .invalid_token_cache import (
    InMemoryInvalidTokenCache,
    InvalidToken,
    InvalidTokenCache,
    is_token_invalidated,
)
from .key_resolver import KeyResolver, StaticKeyResolver
from .secret_provider import InMemorySecretProvider, SecretProvider
from .token_provider import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    StubTokenProvider,
    TokenProvider,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "InMemoryInvalidTokenCache",
    "InMemorySecretProvider",
    "InvalidToken",
    "InvalidTokenCache",
    "KeyResolver",
    "SecretProvider",
    "StaticKeyResolver",
    "StubTokenProvider",
    "TokenProvider",
    "is_token_invalidated",
]
