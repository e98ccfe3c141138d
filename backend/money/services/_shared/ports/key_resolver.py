from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from money.services._shared.errors import SigningKeyNotFoundError


class KeyResolver(Protocol):
    """
    Resolve the RSA public key that verifies tokens signed under ``kid``.

    :raises SigningKeyNotFoundError: When no published key carries ``kid``.
    :raises KeySetUnavailableError: When the key set cannot be obtained.
    """

    def resolve(self, kid: str, *, issuer: str) -> RSAPublicKey: ...


class StaticKeyResolver(KeyResolver):
    """Fixed ``kid -> key`` mapping, used by unit tests."""

    def __init__(self, keys: Mapping[str, RSAPublicKey]) -> None:
        self._keys = dict(keys)

    def resolve(self, kid: str, *, issuer: str) -> RSAPublicKey:
        try:
            return self._keys[kid]
        except KeyError:
            raise SigningKeyNotFoundError() from None
