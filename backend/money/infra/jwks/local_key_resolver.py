# money/infra/jwks/local_key_resolver.py
from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from money.services._shared.ports import KeyResolver
from money.services.keys import SigningKeyService, find_jwk, jwk_to_public_key


class LocalKeyResolver(KeyResolver):
    """
    Resolve keys from the same document ``/auth/jwks`` would serve.

    Used when the verifier runs next to the key material, avoiding the HTTP
    round trip to itself. ``issuer`` is already checked by the token provider.
    """

    def __init__(self, signing_keys: SigningKeyService) -> None:
        self.signing_keys = signing_keys

    def resolve(self, kid: str, *, issuer: str) -> RSAPublicKey:
        return jwk_to_public_key(find_jwk(self.signing_keys.jwks(), kid))
