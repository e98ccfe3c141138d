# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import pytest

from money.repositories import UserRepository
from money.services._shared.errors import (
    ExistingUserError,
    InvalidEmailError,
    InvalidTokenError,
    MissingEmailError,
    MissingPasswordError,
    MissingRefreshTokenError,
    RefreshTokenMismatchError,
    UnauthorizedError,
    UserNotFoundError,
    WrongCredentialsError,
)
from money.services._shared.ports import (
    InMemoryInvalidTokenCache,
    StubTokenProvider,
    is_token_invalidated,
)
from money.services.auth import LoginIn, LogoutIn, RefreshIn, SessionOut, SignupIn
from money.services.auth.service import AuthService, validate_credentials
from money.services.tokens import TokenSettings, hash_token
from tests.factories.user import DEFAULT_PASSWORD, UserFactory


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def service(session) -> AuthService:
    """Build an AuthService wired to in-memory doubles."""
    return AuthService(
        token_provider=StubTokenProvider(),
        invalid_tokens=InMemoryInvalidTokenCache(),
        settings=TokenSettings(
            access_expires=timedelta(minutes=5),
            refresh_expires=timedelta(days=30),
            scope="read write",
        ),
    )


def _login(service, user) -> SessionOut:
    return service.login(LoginIn(email=user.username, password=DEFAULT_PASSWORD))


def _revoked(service, user, token) -> bool:
    return is_token_invalidated(service.invalid_tokens, user.username, hash_token(token))


# ---------------------------- Validation ---------------------------------- #
@pytest.mark.parametrize(
    ("email", "password", "error"),
    [
        ("", "pw", MissingEmailError),
        ("   ", "pw", MissingEmailError),
        ("not-an-email", "pw", InvalidEmailError),
        ("a@b", "pw", InvalidEmailError),
        ("a@b.c.d", "pw", InvalidEmailError),
        ("ana@example.com", "", MissingPasswordError),
    ],
)
def test_validate_credentials_rejects(email, password, error):
    with pytest.raises(error):
        validate_credentials(email, password)


def test_validate_credentials_normalizes():
    assert validate_credentials(" Ana.B+x@Example.com ", "pw") == "ana.b+x@example.com"


# ------------------------------ Signup ------------------------------------ #
def test_signup_creates_account(service, session):
    service.signup(SignupIn(email="New@Example.com", password="pw", full_name="  Ana  "))
    user = UserRepository(session).get_by_username("new@example.com")
    assert user is not None
    assert user.full_name == "Ana"
    assert user.verify_password("pw")


def test_signup_existing_user(service):
    UserFactory(username="taken@example.com")
    with pytest.raises(ExistingUserError) as exc:
        service.signup(SignupIn(email="TAKEN@example.com", password="pw"))
    assert str(exc.value) == "this account already exists"


# ------------------------------ Login ------------------------------------- #
def test_login_issues_token_pair_and_stores_hashes(service, session):
    """Login returns a token pair and records its hashes on the user."""
    user = UserFactory()
    out = _login(service, user)

    assert out.expires_in == 300
    assert service.tokens.decode(out.tokens.access.value)["type"] == "access"
    assert user.access_token_hash == hash_token(out.tokens.access.value)
    assert user.refresh_token_hash == hash_token(out.tokens.refresh.value)


@pytest.mark.parametrize("email", ["missing@example.com", None])
def test_login_invalid_credentials(service, email):
    user = UserFactory()
    with pytest.raises(WrongCredentialsError):
        service.login(LoginIn(email=email or user.username, password="wrong"))


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_rotates(service):
    user = UserFactory()
    first = _login(service, user)
    second = service.refresh(RefreshIn(refresh_token=first.tokens.refresh.value))

    assert second.tokens.refresh.value != first.tokens.refresh.value
    assert user.refresh_token_hash == hash_token(second.tokens.refresh.value)
    assert user.previous_refresh_token_hash == hash_token(first.tokens.refresh.value)


def test_refresh_reuse_revokes_whole_session(service):
    """Replaying a rotated refresh token kills the live pair too."""
    user = UserFactory()
    r0 = _login(service, user)
    r1 = service.refresh(RefreshIn(refresh_token=r0.tokens.refresh.value))

    with pytest.raises(InvalidTokenError) as exc:
        service.refresh(RefreshIn(refresh_token=r0.tokens.refresh.value))
    assert str(exc.value) == "invalid token"

    assert _revoked(service, user, r1.tokens.refresh.value)
    assert _revoked(service, user, r1.tokens.access.value)
    assert _revoked(service, user, r0.tokens.access.value)
    assert user.previous_access_token_hash is None
    assert user.refresh_token_hash is None
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(refresh_token=r1.tokens.refresh.value))


def test_refresh_mismatch(service):
    user = UserFactory()
    oldest = _login(service, user)
    _login(service, user)
    _login(service, user)
    with pytest.raises(RefreshTokenMismatchError):
        service.refresh(RefreshIn(refresh_token=oldest.tokens.refresh.value))


def test_refresh_requires_token(service):
    with pytest.raises(MissingRefreshTokenError):
        service.refresh(RefreshIn(refresh_token=""))


def test_refresh_rejects_access_token(service):
    out = _login(service, UserFactory())
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(refresh_token=out.tokens.access.value))


def test_refresh_expired_token_is_unauthorized(service, freeze_time):
    user = UserFactory()
    with freeze_time("2024-01-01 00:00:00") as frozen:
        out = _login(service, user)
        frozen.tick(timedelta(days=31))
        with pytest.raises(UnauthorizedError):
            service.refresh(RefreshIn(refresh_token=out.tokens.refresh.value))


def test_refresh_for_deleted_account(service, session):
    user = UserFactory()
    out = _login(service, user)
    session.delete(user)
    session.commit()
    with pytest.raises(UserNotFoundError):
        service.refresh(RefreshIn(refresh_token=out.tokens.refresh.value))


# ------------------------------ Logout ------------------------------------ #
def test_logout_invalidates_and_clears(service):
    user = UserFactory()
    out = _login(service, user)
    service.logout(LogoutIn(refresh_token=out.tokens.refresh.value))

    assert _revoked(service, user, out.tokens.refresh.value)
    assert _revoked(service, user, out.tokens.access.value)
    assert user.refresh_token_hash is None
    assert user.access_token_hash is None
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(refresh_token=out.tokens.refresh.value))


def test_logout_with_superseded_token_keeps_current_session(service):
    user = UserFactory()
    old = _login(service, user)
    new = service.refresh(RefreshIn(refresh_token=old.tokens.refresh.value))

    service.logout(LogoutIn(refresh_token=old.tokens.refresh.value))

    assert _revoked(service, user, old.tokens.refresh.value)
    assert user.refresh_token_hash == hash_token(new.tokens.refresh.value)


def test_logout_accepts_expired_token(service, freeze_time):
    user = UserFactory()
    with freeze_time("2024-01-01 00:00:00") as frozen:
        out = _login(service, user)
        frozen.tick(timedelta(days=31))
        service.logout(LogoutIn(refresh_token=out.tokens.refresh.value))
    assert user.refresh_token_hash is None


def test_logout_requires_refresh_token(service):
    out = _login(service, UserFactory())
    with pytest.raises(MissingRefreshTokenError):
        service.logout(LogoutIn(refresh_token=""))
    with pytest.raises(InvalidTokenError):
        service.logout(LogoutIn(refresh_token=out.tokens.access.value))
