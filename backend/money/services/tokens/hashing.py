"""SHA-256 digests of issued tokens; only these are ever persisted."""

from __future__ import annotations

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the lowercase hex SHA-256 digest of ``token``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hashes_match(stored_hash: str | None, token: str) -> bool:
    """Compare ``token`` against a stored digest in constant time."""
    if not stored_hash:
        return False
    return hmac.compare_digest(stored_hash, hash_token(token))
