from money.services.keys.jwk import (
    find_jwk,
    generate_key_material,
    jwk_to_public_key,
    public_key_to_jwk,
    thumbprint,
)
from money.services.keys.service import SigningKeyService

__all__ = [
    "SigningKeyService",
    "find_jwk",
    "generate_key_material",
    "jwk_to_public_key",
    "public_key_to_jwk",
    "thumbprint",
]
