"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between adapters, repositories
and application services.

The translation to HTTP responses (RFC 7807) is handled by
``money/core/errors.py`` via ``BaseService.translate_exceptions()``.

Messages are client-facing. Every token failure that could help tell a
forged token from a malformed one carries the same ``"invalid token"`` text.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Subclasses set a class-level ``message`` used when none is given.
    """

    message = "service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.message


class ValidationError(ServiceError):
    """Request content is missing or malformed (maps to 400)."""

    message = "invalid request body"


class AuthenticationError(ServiceError):
    """A credential or token was rejected (maps to 401)."""

    message = "Unauthorized"


class InfrastructureError(ServiceError):
    """A backing service failed or is misconfigured (maps to 503)."""

    message = "service temporarily unavailable"


# --------------------------------------------------------------------------- #
# Credentials and accounts
# --------------------------------------------------------------------------- #


class MissingEmailError(ValidationError):
    message = "missing email"


class InvalidEmailError(ValidationError):
    message = "email is invalid"


class MissingPasswordError(ValidationError):
    message = "missing password"


class MissingRefreshTokenError(ValidationError):
    message = "missing refresh token"


class WrongCredentialsError(ValidationError):
    """Unknown user or wrong password; the two are not distinguished."""

    message = "the email or password are incorrect"


class ExistingUserError(ValidationError):
    message = "this account already exists"


@dataclass(slots=True)
class UserNotFoundError(ServiceError):
    """
    Raised when no account exists for a token subject.

    :param username: Identifier that was looked up.
    :type username: str
    """

    username: str

    def __str__(self) -> str:
        return "user not found"


# --------------------------------------------------------------------------- #
# Tokens
# --------------------------------------------------------------------------- #


class UnauthorizedError(AuthenticationError):
    """Claims check failed: expired, not yet valid, wrong issuer or audience."""

    message = "Unauthorized"


class InvalidTokenError(AuthenticationError):
    """Token is not acceptable for this use (revoked, reused, wrong type)."""

    message = "invalid token"


class MalformedTokenError(InvalidTokenError):
    """Token could not be parsed or its signature did not verify."""

    message = "invalid token"


class RefreshTokenMismatchError(AuthenticationError):
    message = "received refresh token doesn't match with the user's"


class RotationConflictError(AuthenticationError):
    """Another request rotated the same refresh token first."""

    message = "invalid token"


# --------------------------------------------------------------------------- #
# Infrastructure
# --------------------------------------------------------------------------- #


class SigningKeyNotFoundError(InfrastructureError):
    message = "signing key not found"


@dataclass(slots=True)
class SecretNotFoundError(InfrastructureError):
    """
    Raised when the secret store reports no secret under ``name``.

    :param name: Secret name or ARN.
    :type name: str
    """

    name: str

    def __str__(self) -> str:
        return "secret not found"


class SecretStoreError(InfrastructureError):
    message = "secret store unavailable"


class KeySetUnavailableError(InfrastructureError):
    message = "key set unavailable"


class CacheUnavailableError(InfrastructureError):
    message = "invalid token cache unavailable"


class InvalidTokensNotFoundError(ServiceError):
    """No invalidated tokens are recorded for the user."""

    message = "no invalid tokens found"


class InvalidTTLError(ServiceError):
    message = "TTL is from a past datetime"
