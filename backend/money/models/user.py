"""User model holding credentials and the current token fingerprints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from money.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, TokenHashesMixin


class User(PKMixin, ReprMixin, TokenHashesMixin, TimestampMixin, db.Model):
    """
    Account identity plus the hashes of the tokens it currently holds.

    Only SHA-256 hex digests of issued tokens are stored, never the tokens
    themselves. ``previous_refresh_token_hash`` keeps the refresh token that
    the latest rotation superseded so a replay of it can be recognised.

    Fields
    ------
    username : str
        Login identifier (the account email). Stored normalized.
    full_name : str | None
        Optional display name.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    access_token_hash, refresh_token_hash : str | None
        Digests of the active token pair.
    previous_refresh_token_hash : str | None
        Digest of the refresh token replaced by the last rotation.
    access_token_expires_at, refresh_token_expires_at : int | None
        Unix expiry of the active pair, used to size cache entries when the
        pair has to be invalidated early.
    """

    __tablename__ = "users"
    __repr_attrs__ = ("id", "username")

    username: Mapped[str] = mapped_column(String(254), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)

    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        """
        Normalize the login identifier (trimmed, lowercased).

        :raises ValueError: If the value is missing or only whitespace.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value.strip().lower()
