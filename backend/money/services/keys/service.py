# money/services/keys/service.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from money.services._shared.errors import InfrastructureError
from money.services._shared.ports import SecretProvider
from money.services.keys.jwk import public_key_to_jwk

log = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _load_private(pem: str) -> rsa.RSAPrivateKey:
    key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ValueError("not an RSA private key")
    return key


@lru_cache(maxsize=8)
def _load_public(pem: str) -> rsa.RSAPublicKey:
    key = serialization.load_pem_public_key(pem.encode("utf-8"))
    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError("not an RSA public key")
    return key


class SigningKeyService:
    """
    Signing keypair and key id backed by the secret store.

    Secrets are requested from the provider on every call and parsed keys
    are memoised by PEM text. The AWS provider keeps each secret for the
    life of the process, so a new keypair is rolled out by publishing it
    under new secret names and redeploying with those names configured.

    :param secrets: Secret provider.
    :param private_secret: Name of the PEM private key secret.
    :param public_secret: Name of the PEM public key secret.
    :param kid_secret: Name of the key id secret.
    """

    def __init__(
        self,
        secrets: SecretProvider,
        *,
        private_secret: str,
        public_secret: str,
        kid_secret: str,
    ) -> None:
        self.secrets = secrets
        self.private_secret = private_secret
        self.public_secret = public_secret
        self.kid_secret = kid_secret

    @classmethod
    def from_config(cls, secrets: SecretProvider, config: Any) -> SigningKeyService:
        return cls(
            secrets,
            private_secret=config["TOKEN_PRIVATE_SECRET"],
            public_secret=config["TOKEN_PUBLIC_SECRET"],
            kid_secret=config["KID_SECRET"],
        )

    def private_key(self) -> rsa.RSAPrivateKey:
        try:
            return _load_private(self.secrets.get_secret(self.private_secret))
        except ValueError as exc:
            log.error("keys.invalid_private_key", extra={"reason": str(exc)})
            raise InfrastructureError("invalid key material") from exc

    def public_key(self) -> rsa.RSAPublicKey:
        try:
            return _load_public(self.secrets.get_secret(self.public_secret))
        except ValueError as exc:
            log.error("keys.invalid_public_key", extra={"reason": str(exc)})
            raise InfrastructureError("invalid key material") from exc

    def kid(self) -> str:
        return self.secrets.get_secret(self.kid_secret).strip()

    def jwks(self) -> dict[str, list[dict[str, str]]]:
        """
        Build the public key set document.

        :returns: ``{"keys": [jwk]}`` with the single active key.
        :raises SecretNotFoundError: When a key secret is missing.
        """
        return {"keys": [public_key_to_jwk(self.public_key(), self.kid())]}
