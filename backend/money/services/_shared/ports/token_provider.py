from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from money.services._shared.errors import MalformedTokenError, UnauthorizedError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenProvider(Protocol):
    """Port for signing and verifying RS256 tokens.

    ``decode`` raises :class:`MalformedTokenError` for anything that is not
    a well-formed, correctly signed token, and :class:`UnauthorizedError`
    when the signature is fine but the claims are not (``exp``, ``nbf``,
    ``iss``, ``aud``).
    """

    def create_access_token(
        self, *, subject: str, scope: str, expires_delta: timedelta
    ) -> str: ...

    def create_refresh_token(self, *, subject: str, expires_delta: timedelta) -> str: ...

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]: ...

    def peek_claims(self, token: str) -> dict[str, Any]:
        """Claims of a token this provider just issued, without verification."""
        ...


def split_token(token: str) -> list[str]:
    """Return the three dot-separated segments of ``token``.

    :raises MalformedTokenError: If ``token`` does not have exactly three.
    """
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3 or not all(parts):
        raise MalformedTokenError()
    return parts


def expires_at(claims: dict[str, Any]) -> datetime:
    """Return the ``exp`` claim as an aware datetime."""
    return datetime.fromtimestamp(int(claims["exp"]), tz=UTC)


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests.

    Tokens look like JWTs (three segments) but are only meaningful to the
    instance that issued them. Expiry is evaluated against the wall clock,
    so tests can move time with ``freezegun``.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def _mk(self, *, subject: str, ttype: str, exp_delta: timedelta, **extra: Any) -> str:
        self._seq += 1
        now = datetime.now(tz=UTC)
        token = f"stub.{ttype}-{self._seq}.sig"
        payload: dict[str, Any] = {
            "sub": subject,
            "type": ttype,
            "jti": f"jti-{self._seq}",
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + exp_delta).timestamp()),
        }
        payload.update(extra)
        self._issued[token] = payload
        return token

    def create_access_token(
        self, *, subject: str, scope: str, expires_delta: timedelta
    ) -> str:
        return self._mk(
            subject=subject, ttype=ACCESS_TOKEN_TYPE, exp_delta=expires_delta, scope=scope
        )

    def create_refresh_token(self, *, subject: str, expires_delta: timedelta) -> str:
        return self._mk(subject=subject, ttype=REFRESH_TOKEN_TYPE, exp_delta=expires_delta)

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        split_token(token)
        claims = self._issued.get(token)
        if claims is None:
            raise MalformedTokenError()
        if not allow_expired and claims["exp"] <= int(datetime.now(tz=UTC).timestamp()):
            raise UnauthorizedError()
        return dict(claims)

    def peek_claims(self, token: str) -> dict[str, Any]:
        claims = self._issued.get(token)
        if claims is None:
            raise MalformedTokenError()
        return dict(claims)
