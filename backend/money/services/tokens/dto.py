# money/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from money.models.user import User


@dataclass(frozen=True, slots=True)
class AuthToken:
    """
    An encoded token and its expiry.

    :param value: Compact JWT.
    :type value: str
    :param expires_at: Aware UTC expiry, used for cookie ``Expires``.
    :type expires_at: datetime
    """

    value: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPair:
    access: AuthToken
    refresh: AuthToken


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission settings.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param scope: Space-separated scope stamped on access tokens.
    """

    access_expires: timedelta
    refresh_expires: timedelta
    scope: str

    @classmethod
    def from_config(cls, config: Any) -> TokenSettings:
        return cls(
            access_expires=timedelta(seconds=int(config["ACCESS_TOKEN_DURATION"])),
            refresh_expires=timedelta(seconds=int(config["REFRESH_TOKEN_DURATION"])),
            scope=str(config["TOKEN_SCOPE"]),
        )


class RefreshOutcome(str, Enum):
    """Result of checking a presented refresh token against stored state."""

    CURRENT = "current"
    REUSED = "reused"
    REVOKED = "revoked"
    MISMATCH = "mismatch"


@dataclass(frozen=True, slots=True)
class RefreshCheck:
    user: User
    outcome: RefreshOutcome
    token_hash: str
