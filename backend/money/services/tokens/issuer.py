# money/services/tokens/issuer.py
from __future__ import annotations

import logging

from money.models.user import User
from money.repositories.user import UserRepository
from money.services._shared.errors import RotationConflictError
from money.services._shared.ports import TokenProvider
from money.services._shared.ports.token_provider import expires_at
from money.services.tokens.dto import AuthToken, TokenPair, TokenSettings
from money.services.tokens.hashing import hash_token

log = logging.getLogger(__name__)


class TokenIssuer:
    """
    Mint an access/refresh pair for a user and persist its hashes.

    The current refresh hash moves into ``previous_refresh_token_hash`` so a
    later presentation of the superseded token can be recognised as reuse,
    and the current access hash moves into ``previous_access_token_hash`` so
    that reuse can revoke it too.
    Must run inside a read-write unit of work; the caller commits.

    :param tokens: Token provider (signing).
    :param settings: Lifetimes and scope.
    """

    def __init__(self, tokens: TokenProvider, settings: TokenSettings) -> None:
        self.tokens = tokens
        self.settings = settings

    def issue(self, users: UserRepository, user: User) -> TokenPair:
        """
        Issue and store a new pair for ``user``.

        :param users: Repository bound to the caller's unit of work.
        :param user: Account as loaded by the caller; its refresh hash is the
            expected value for the conditional write.
        :returns: New token pair.
        :raises RotationConflictError: If the stored refresh hash changed
            since ``user`` was loaded.
        """
        access = self.tokens.create_access_token(
            subject=user.username,
            scope=self.settings.scope,
            expires_delta=self.settings.access_expires,
        )
        refresh = self.tokens.create_refresh_token(
            subject=user.username, expires_delta=self.settings.refresh_expires
        )
        # Expiries as stamped by the provider, not recomputed here
        access_exp = expires_at(self.tokens.peek_claims(access))
        refresh_exp = expires_at(self.tokens.peek_claims(refresh))

        expected = user.refresh_token_hash
        stored = users.store_token_hashes(
            user.id,
            expected_refresh_hash=expected,
            access_hash=hash_token(access),
            refresh_hash=hash_token(refresh),
            previous_refresh_hash=expected,
            access_expires_at=int(access_exp.timestamp()),
            refresh_expires_at=int(refresh_exp.timestamp()),
            previous_access_hash=user.access_token_hash,
            previous_access_expires_at=user.access_token_expires_at,
        )
        if not stored:
            log.warning("tokens.rotation_conflict", extra={"username": user.username})
            raise RotationConflictError()

        return TokenPair(
            access=AuthToken(access, access_exp),
            refresh=AuthToken(refresh, refresh_exp),
        )
