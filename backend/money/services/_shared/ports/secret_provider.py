from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from money.services._shared.errors import SecretNotFoundError


class SecretProvider(Protocol):
    """
    Read-only access to named secrets (RSA keys, key id).

    Implementations cache successful lookups for the process lifetime and
    raise :class:`SecretNotFoundError` when the store has no such secret.
    """

    def get_secret(self, name: str) -> str: ...


class InMemorySecretProvider(SecretProvider):
    """Dictionary-backed secrets for tests and local development."""

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets: dict[str, str] = dict(secrets or {})

    def put_secret(self, name: str, value: str) -> None:
        self._secrets[name] = value

    def get_secret(self, name: str) -> str:
        try:
            return self._secrets[name]
        except KeyError:
            raise SecretNotFoundError(name) from None
