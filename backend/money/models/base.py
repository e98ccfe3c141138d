"""Reusable SQLAlchemy mixins for the account tables (typed 2.0)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

#: Length of a SHA-256 hex digest.
TOKEN_HASH_LENGTH = 64


class TimestampMixin:
    """Provide ``created_at`` and ``updated_at`` columns set by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class PKMixin:
    """Expose an integer surrogate primary key column named ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TokenHashesMixin:
    """Fingerprints and expiries of the token pair an account currently holds.

    Attributes
    ----------
    access_token_hash, refresh_token_hash:
        SHA-256 hex digests of the active pair.
    previous_refresh_token_hash:
        Digest of the refresh token replaced by the last rotation.
    previous_access_token_hash, previous_access_token_expires_at:
        Access token issued alongside the superseded refresh token. It stays
        valid until it expires unless reuse of that refresh token is detected.
    access_token_expires_at, refresh_token_expires_at:
        Unix expiry of the active pair.
    """

    access_token_hash: Mapped[str | None] = mapped_column(String(TOKEN_HASH_LENGTH))
    refresh_token_hash: Mapped[str | None] = mapped_column(String(TOKEN_HASH_LENGTH))
    previous_refresh_token_hash: Mapped[str | None] = mapped_column(String(TOKEN_HASH_LENGTH))
    previous_access_token_hash: Mapped[str | None] = mapped_column(String(TOKEN_HASH_LENGTH))
    access_token_expires_at: Mapped[int | None] = mapped_column(BigInteger)
    refresh_token_expires_at: Mapped[int | None] = mapped_column(BigInteger)
    previous_access_token_expires_at: Mapped[int | None] = mapped_column(BigInteger)


class ReprMixin:
    """``__repr__`` limited to the attributes named in ``__repr_attrs__``.

    Keeps password and token digests out of logs and tracebacks.
    """

    __repr_attrs__: tuple[str, ...] = ("id",)

    def __repr__(self) -> str:
        fields = " ".join(f"{name}={getattr(self, name, None)!r}" for name in self.__repr_attrs__)
        return f"<{self.__class__.__name__} {fields}>"
