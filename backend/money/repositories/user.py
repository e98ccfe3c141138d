"""User repository for persistence of accounts and token hashes."""

from __future__ import annotations

from typing import cast

from sqlalchemy import CursorResult, select, update

from money.models.user import User
from money.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It stores token *hashes* handed to it by the token services; it never
    creates, decodes or compares tokens itself.
    """

    model = User

    # ---------------------------- Lookup helpers ----------------------------

    def get(self, user_id: int) -> User | None:
        """Fetch a user by primary key."""
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by login identifier (case-insensitive).

        :param username: Identifier to normalise and search.
        :type username: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.username == username.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when a user with the provided identifier exists."""
        stmt = select(User.id).where(User.username == username.lower().strip())
        return bool(self.session.execute(stmt).first())

    def create(self, *, username: str, password: str, full_name: str | None = None) -> User:
        """Create and flush a new user; the model setter hashes ``password``.

        :raises sqlalchemy.exc.IntegrityError: On a concurrent duplicate insert.
        """
        user = User(username=username, full_name=full_name)
        user.password = password
        return self.add(user)

    # ---------------------------- Token hashes ----------------------------

    def store_token_hashes(
        self,
        user_id: int,
        *,
        expected_refresh_hash: str | None,
        access_hash: str,
        refresh_hash: str,
        previous_refresh_hash: str | None,
        access_expires_at: int,
        refresh_expires_at: int,
        previous_access_hash: str | None = None,
        previous_access_expires_at: int | None = None,
    ) -> bool:
        """Write a new token pair only if the stored refresh hash is unchanged.

        The ``WHERE`` clause on ``refresh_token_hash`` turns the write into a
        compare-and-set: when two rotations race with the same refresh token,
        only the first one matches.

        :param user_id: Primary key of the user.
        :param expected_refresh_hash: Refresh hash read before issuing.
        :param previous_access_hash: Access hash of the pair being replaced,
            kept with its expiry so reuse detection can still revoke it.
        :returns: ``True`` when exactly one row was updated.
        :rtype: bool
        """
        guard = (
            User.refresh_token_hash.is_(None)
            if expected_refresh_hash is None
            else User.refresh_token_hash == expected_refresh_hash
        )
        stmt = (
            update(User)
            .where(User.id == user_id, guard)
            .values(
                access_token_hash=access_hash,
                refresh_token_hash=refresh_hash,
                previous_refresh_token_hash=previous_refresh_hash,
                access_token_expires_at=access_expires_at,
                refresh_token_expires_at=refresh_expires_at,
                previous_access_token_hash=previous_access_hash,
                previous_access_token_expires_at=previous_access_expires_at,
            )
            .execution_options(synchronize_session="evaluate")
        )
        result = cast(CursorResult, self.session.execute(stmt))
        return result.rowcount == 1

    def clear_token_hashes(self, user: User) -> None:
        """Forget the active and previous access tokens and the active refresh token.

        The superseded refresh hash is kept so replays are still recognised.
        """
        user.access_token_hash = None
        user.refresh_token_hash = None
        user.access_token_expires_at = None
        user.refresh_token_expires_at = None
        user.previous_access_token_hash = None
        user.previous_access_token_expires_at = None
        self.flush()
