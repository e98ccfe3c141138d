# money/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from money.services.tokens.dto import TokenPair

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for account creation.

    :param email: Login identifier.
    :type email: str
    :param password: Raw password (hashed by the model).
    :type password: str
    :param full_name: Optional display name.
    :type full_name: str | None
    """

    email: str
    password: str
    full_name: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: Login identifier.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT from the ``RefreshToken`` cookie.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Output DTO for login and refresh.

    :param tokens: The new access/refresh pair, set as cookies by the API.
    :type tokens: TokenPair
    :param expires_in: Access token lifetime in seconds.
    :type expires_in: int
    """

    tokens: TokenPair
    expires_in: int
