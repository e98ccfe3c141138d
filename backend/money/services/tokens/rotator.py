# money/services/tokens/rotator.py
from __future__ import annotations

import logging
import time

from money.models.user import User
from money.repositories.user import UserRepository
from money.services._shared.errors import InvalidTokenError, UserNotFoundError
from money.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    InvalidTokenCache,
    TokenProvider,
    is_token_invalidated,
)
from money.services.tokens.dto import RefreshCheck, RefreshOutcome
from money.services.tokens.hashing import hash_token, hashes_match

log = logging.getLogger(__name__)


class RefreshTokenRotator:
    """
    Verify presented refresh tokens and detect reuse.

    A refresh token is usable once. Presenting the superseded one again
    means it was copied, so every token of the session is invalidated.

    :param tokens: Token provider (verification).
    :param invalid_tokens: Per-user invalid-token cache.
    """

    def __init__(self, tokens: TokenProvider, invalid_tokens: InvalidTokenCache) -> None:
        self.tokens = tokens
        self.invalid_tokens = invalid_tokens

    def check(self, users: UserRepository, refresh_token: str) -> RefreshCheck:
        """
        Verify ``refresh_token`` and classify it against the stored hashes.

        :raises MalformedTokenError: Unparseable or badly signed token.
        :raises UnauthorizedError: Expired token or wrong issuer/audience.
        :raises InvalidTokenError: Token is not a refresh token.
        :raises UserNotFoundError: The subject has no account.
        """
        claims = self.tokens.decode(refresh_token)
        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError()

        username = str(claims.get("sub") or "")
        user = users.get_by_username(username) if username else None
        if user is None:
            raise UserNotFoundError(username)

        token_hash = hash_token(refresh_token)
        if is_token_invalidated(self.invalid_tokens, user.username, token_hash):
            outcome = RefreshOutcome.REVOKED
        elif hashes_match(user.refresh_token_hash, refresh_token):
            outcome = RefreshOutcome.CURRENT
        elif hashes_match(user.previous_refresh_token_hash, refresh_token):
            outcome = RefreshOutcome.REUSED
        else:
            outcome = RefreshOutcome.MISMATCH
        return RefreshCheck(user=user, outcome=outcome, token_hash=token_hash)

    def invalidate_active(self, user: User) -> int:
        """
        Put every stored token of the session in the cache.

        That is the active pair plus the access token issued with the
        superseded refresh token. Entries already past their expiry are
        skipped.

        :returns: Number of hashes added.
        """
        now = int(time.time())
        added = 0
        for token_hash, expire in (
            (user.access_token_hash, user.access_token_expires_at),
            (user.refresh_token_hash, user.refresh_token_expires_at),
            (user.previous_access_token_hash, user.previous_access_token_expires_at),
        ):
            if token_hash and expire and expire >= now:
                self.invalid_tokens.add_invalid_token(user.username, token_hash, int(expire))
                added += 1
        return added

    def invalidate(self, username: str, token_hash: str, expire: int) -> bool:
        """Add one hash if it has not expired yet; return whether it was added."""
        if expire < int(time.time()):
            return False
        self.invalid_tokens.add_invalid_token(username, token_hash, int(expire))
        return True
