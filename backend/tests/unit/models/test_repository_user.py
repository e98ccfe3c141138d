"""Unit tests for UserRepository."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from money.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs lookups and guarded token writes."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def _store(self, repo, user, *, expected, refresh="r1"):
        return repo.store_token_hashes(
            user.id,
            expected_refresh_hash=expected,
            access_hash="a1",
            refresh_hash=refresh,
            previous_refresh_hash=expected,
            access_expires_at=100,
            refresh_expires_at=200,
        )

    def test_get_and_exists_are_case_insensitive(self, repo):
        u = UserFactory(username="alice@example.com")
        assert repo.get_by_username("ALICE@example.com").id == u.id
        assert repo.exists_by_username(" Alice@Example.com ")
        assert not repo.exists_by_username("nobody@example.com")

    def test_get_by_primary_key(self, repo):
        user = UserFactory()
        assert repo.get(user.id) is user
        assert repo.get(user.id + 1000) is None

    def test_create_hashes_password(self, repo, session):
        user = repo.create(username="New@Example.com", password="pw", full_name="New User")
        session.commit()
        assert user.username == "new@example.com"
        assert user.verify_password("pw")

    def test_duplicate_username_violates_constraint(self, repo, session):
        UserFactory(username="dup@example.com")
        with pytest.raises(IntegrityError):
            repo.create(username="dup@example.com", password="pw")
        session.rollback()

    def test_store_token_hashes_is_compare_and_set(self, repo, session):
        user = UserFactory()
        assert self._store(repo, user, expected=None) is True
        session.commit()
        assert user.refresh_token_hash == "r1"
        assert user.refresh_token_expires_at == 200

        # A second writer still holding the old value loses
        assert self._store(repo, user, expected=None, refresh="r2") is False
        assert self._store(repo, user, expected="r1", refresh="r2") is True
        session.commit()
        assert (user.refresh_token_hash, user.previous_refresh_token_hash) == ("r2", "r1")

    def test_clear_token_hashes_keeps_previous(self, repo, session):
        user = UserFactory(
            access_token_hash="a", refresh_token_hash="r", previous_refresh_token_hash="p"
        )
        repo.clear_token_hashes(user)
        session.commit()
        assert user.access_token_hash is None
        assert user.refresh_token_hash is None
        assert user.previous_refresh_token_hash == "p"

    def test_store_token_hashes_keeps_replaced_access_token(self, repo, session):
        user = UserFactory()
        assert repo.store_token_hashes(
            user.id,
            expected_refresh_hash=None,
            access_hash="a2",
            refresh_hash="r2",
            previous_refresh_hash=None,
            access_expires_at=300,
            refresh_expires_at=400,
            previous_access_hash="a1",
            previous_access_expires_at=100,
        )
        session.commit()
        assert (user.previous_access_token_hash, user.previous_access_token_expires_at) == (
            "a1",
            100,
        )

    def test_clear_token_hashes_drops_previous_access_token(self, repo, session):
        user = UserFactory(previous_access_token_hash="a0", previous_access_token_expires_at=50)
        repo.clear_token_hashes(user)
        session.commit()
        assert user.previous_access_token_hash is None
        assert user.previous_access_token_expires_at is None
