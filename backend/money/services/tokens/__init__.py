from money.services.tokens.dto import (
    AuthToken,
    RefreshCheck,
    RefreshOutcome,
    TokenPair,
    TokenSettings,
)
from money.services.tokens.hashing import hash_token, hashes_match
from money.services.tokens.issuer import TokenIssuer
from money.services.tokens.rotator import RefreshTokenRotator

__all__ = [
    "AuthToken",
    "RefreshCheck",
    "RefreshOutcome",
    "RefreshTokenRotator",
    "TokenIssuer",
    "TokenPair",
    "TokenSettings",
    "hash_token",
    "hashes_match",
]
