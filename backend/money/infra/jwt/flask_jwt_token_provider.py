# money/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

import jwt as pyjwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from flask_jwt_extended import JWTManager
from flask_jwt_extended.exceptions import JWTDecodeError

from money.services._shared.errors import MalformedTokenError, UnauthorizedError
from money.services._shared.ports import KeyResolver, TokenProvider
from money.services._shared.ports.token_provider import split_token
from money.services.keys import SigningKeyService

log = logging.getLogger(__name__)

# Signature is fine but the claims are not
CLAIM_ERRORS: tuple[type[Exception], ...] = (
    pyjwt.ExpiredSignatureError,
    pyjwt.ImmatureSignatureError,
    pyjwt.InvalidIssuedAtError,
    pyjwt.InvalidIssuerError,
    pyjwt.InvalidAudienceError,
    pyjwt.MissingRequiredClaimError,
)


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended with RS256 keys from the secret store.

    Signing uses the private key of :class:`SigningKeyService` and stamps its
    ``kid`` in the header. Verification goes through the decode key loader,
    which resolves the public key by ``kid`` through a :class:`KeyResolver`
    (JWKS self-fetch or in-process lookup).

    .. note::
       Requires an active Flask app context with the ``JWT_*`` settings and
       :func:`register_key_loaders` applied to the app's ``JWTManager``.

    :param signing_keys: Keypair and kid source.
    :param key_resolver: Public key lookup by ``kid``.
    :param issuer: Only tokens claiming this ``iss`` get a key lookup.
    """

    signing_keys: SigningKeyService
    key_resolver: KeyResolver
    issuer: str

    def create_access_token(
        self, *, subject: str, scope: str, expires_delta: timedelta
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=subject,
                expires_delta=expires_delta,
                additional_claims={"scope": scope},
                additional_headers={"kid": self.signing_keys.kid()},
            ),
        )

    def create_refresh_token(self, *, subject: str, expires_delta: timedelta) -> str:
        from flask_jwt_extended import create_refresh_token as _create_refresh

        return cast(
            str,
            _create_refresh(
                identity=subject,
                expires_delta=expires_delta,
                additional_headers={"kid": self.signing_keys.kid()},
            ),
        )

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        split_token(token)
        try:
            return cast(dict[str, Any], decode_token(token, allow_expired=allow_expired))
        except CLAIM_ERRORS as exc:
            log.info("tokens.claims_rejected", extra={"reason": type(exc).__name__})
            raise UnauthorizedError() from exc
        except (pyjwt.InvalidTokenError, JWTDecodeError) as exc:
            log.info("tokens.malformed", extra={"reason": type(exc).__name__})
            raise MalformedTokenError() from exc

    def peek_claims(self, token: str) -> dict[str, Any]:
        """Read the claims of a token issued here; the signature is not checked."""
        try:
            return cast(
                dict[str, Any], pyjwt.decode(token, options={"verify_signature": False})
            )
        except pyjwt.InvalidTokenError as exc:
            raise MalformedTokenError() from exc

    # ---------------------- key loader callbacks ----------------------

    def signing_key(self) -> RSAPrivateKey:
        return self.signing_keys.private_key()

    def verification_key(
        self, jwt_header: dict[str, Any], jwt_payload: dict[str, Any]
    ) -> RSAPublicKey:
        """
        Public key for a token, chosen before the signature is checked.

        The claimed issuer decides where keys are fetched from, so anything
        other than the configured issuer is rejected up front.

        :raises UnauthorizedError: Foreign issuer.
        :raises SigningKeyNotFoundError: No published key for the ``kid``.
        """
        issuer = jwt_payload.get("iss")
        if issuer != self.issuer:
            raise UnauthorizedError()
        kid = jwt_header.get("kid") or self.signing_keys.kid()
        return self.key_resolver.resolve(str(kid), issuer=issuer)


def register_key_loaders(manager: JWTManager) -> None:
    """Route Flask-JWT-Extended key lookups to the app's token provider."""

    def _provider() -> JWTTokenProvider:
        from money.container import get_container

        tokens = get_container().tokens
        if not isinstance(tokens, JWTTokenProvider):
            raise RuntimeError("JWT key loaders need a JWTTokenProvider in the container.")
        return tokens

    @manager.encode_key_loader
    def _encode_key(identity: Any) -> RSAPrivateKey:
        return _provider().signing_key()

    @manager.decode_key_loader
    def _decode_key(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]) -> RSAPublicKey:
        return _provider().verification_key(jwt_header, jwt_payload)
