# money/services/auth/service.py
from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

from money.services._shared.base import BaseService, ServiceContext
from money.services._shared.errors import (
    ExistingUserError,
    InvalidEmailError,
    InvalidTokenError,
    MissingEmailError,
    MissingPasswordError,
    MissingRefreshTokenError,
    RefreshTokenMismatchError,
    UserNotFoundError,
    WrongCredentialsError,
)
from money.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    InvalidTokenCache,
    TokenProvider,
)
from money.services.auth.dto import LoginIn, LogoutIn, RefreshIn, SessionOut, SignupIn
from money.services.tokens import (
    RefreshOutcome,
    RefreshTokenRotator,
    TokenIssuer,
    TokenSettings,
    hash_token,
    hashes_match,
)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-]+$")


def validate_credentials(email: str | None, password: str | None) -> str:
    """
    Check presence and shape of an email/password pair.

    :returns: The normalised email (trimmed, lowercased).
    :raises MissingEmailError: Empty email.
    :raises InvalidEmailError: Email does not look like an address.
    :raises MissingPasswordError: Empty password.
    """
    email = (email or "").strip()
    if not email:
        raise MissingEmailError()
    if not EMAIL_REGEX.match(email):
        raise InvalidEmailError()
    if not password:
        raise MissingPasswordError()
    return email.lower()


class AuthService(BaseService):
    """
    Authentication lifecycle service (signup / login / refresh / logout).

    Tokens are signed and verified through a :class:`TokenProvider`; only
    their SHA-256 hashes are stored on the user row. Tokens that must stop
    working before they expire go to the :class:`InvalidTokenCache`.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        invalid_tokens: InvalidTokenCache,
        settings: TokenSettings,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for issuing/decoding JWTs.
        :param invalid_tokens: Per-user invalid-token cache.
        :param settings: Token lifetimes and scope.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.invalid_tokens = invalid_tokens
        self.settings = settings
        self.issuer = TokenIssuer(token_provider, settings)
        self.rotator = RefreshTokenRotator(token_provider, invalid_tokens)

    # ------------------------------------------------------------------ #
    # Signup
    # ------------------------------------------------------------------ #

    def signup(self, dto: SignupIn) -> None:
        """
        Create an account.

        :raises ExistingUserError: If the email is already registered.
        """
        email = validate_credentials(dto.email, dto.password)
        full_name = (dto.full_name or "").strip() or None
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_username(email):
                    raise ExistingUserError()
                uow.users.create(username=email, password=dto.password, full_name=full_name)
        except IntegrityError as exc:
            # Lost a race against a concurrent signup for the same email
            raise ExistingUserError() from exc
        self.log.info("signup.succeeded", extra={"username": email})

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown accounts and wrong passwords fail the same way.

        :raises WrongCredentialsError: If the credentials do not match.
        """
        email = validate_credentials(dto.email, dto.password)
        with self.rw_uow() as uow:
            user = uow.users.get_by_username(email)
            if user is None or not user.verify_password(dto.password):
                self.log.info(
                    "login.failed", extra={"username": email, "client_ip": self.ctx.client_ip}
                )
                raise WrongCredentialsError()
            pair = self.issuer.issue(uow.users, user)
        self.log.info("login.succeeded", extra={"username": email})
        return self._session(pair)

    # ------------------------------------------------------------------ #
    # Refresh (rotation + reuse detection)
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Exchange a valid refresh token for a new pair.

        Flow
        ----
        1) Verify the token (signature, ``exp``, ``iss``, ``aud``, type).
        2) Reject it when listed in the invalid-token cache.
        3) Current refresh hash: rotate with a conditional write.
        4) Superseded refresh hash: reuse; invalidate the live pair and fail.
        5) Anything else: mismatch.

        :raises MissingRefreshTokenError: No token was presented.
        :raises MalformedTokenError: Token cannot be parsed or verified.
        :raises UnauthorizedError: Token expired or issued for someone else.
        :raises InvalidTokenError: Token revoked or reused.
        :raises RefreshTokenMismatchError: Token is not the user's.
        :raises RotationConflictError: A concurrent refresh won the race.
        """
        if not dto.refresh_token:
            raise MissingRefreshTokenError()

        with self.rw_uow() as uow:
            check = self.rotator.check(uow.users, dto.refresh_token)
            user = check.user
            if check.outcome is RefreshOutcome.CURRENT:
                pair = self.issuer.issue(uow.users, user)
            elif check.outcome is RefreshOutcome.REUSED:
                self.log.warning("refresh.reuse_detected", extra={"username": user.username})
                self.rotator.invalidate_active(user)
                uow.users.clear_token_hashes(user)

        if check.outcome is RefreshOutcome.CURRENT:
            self.log.info("refresh.succeeded", extra={"username": user.username})
            return self._session(pair)
        if check.outcome is RefreshOutcome.MISMATCH:
            self.log.info("refresh.mismatch", extra={"username": user.username})
            raise RefreshTokenMismatchError()
        raise InvalidTokenError()

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        End the session that ``dto.refresh_token`` belongs to.

        The presented refresh token is invalidated for the rest of its life
        even when already superseded. When it is the current one, the stored
        access token is invalidated too and the stored hashes are cleared.
        An expired token is still accepted so a stale client can log out.

        :raises MissingRefreshTokenError: No token was presented.
        :raises MalformedTokenError: Token cannot be parsed or verified.
        :raises UserNotFoundError: The subject has no account.
        """
        if not dto.refresh_token:
            raise MissingRefreshTokenError()

        claims = self.tokens.decode(dto.refresh_token, allow_expired=True)
        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError()
        username = str(claims.get("sub") or "")

        with self.rw_uow() as uow:
            user = uow.users.get_by_username(username) if username else None
            if user is None:
                raise UserNotFoundError(username)
            self.rotator.invalidate(
                user.username, hash_token(dto.refresh_token), int(claims["exp"])
            )
            if hashes_match(user.refresh_token_hash, dto.refresh_token):
                self.rotator.invalidate_active(user)
                uow.users.clear_token_hashes(user)
        self.log.info("logout.succeeded", extra={"username": username})

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _session(self, pair) -> SessionOut:
        return SessionOut(
            tokens=pair, expires_in=int(self.settings.access_expires.total_seconds())
        )
