# tests/unit/services/test_authorizer_service.py
"""Authorizer decisions with the stub provider and in-memory cache."""

from __future__ import annotations

from datetime import timedelta

import pytest

from money.services._shared.errors import (
    CacheUnavailableError,
    SigningKeyNotFoundError,
    UnauthorizedError,
)
from money.services._shared.ports import InMemoryInvalidTokenCache, StubTokenProvider
from money.services.authorizer import AuthorizeIn, AuthorizerService
from money.services.authorizer.service import (
    REASON_BAD_ARN,
    REASON_CROSS_USER,
    REASON_INTERNAL,
    REASON_INVALID_TOKEN,
    REASON_TOKEN_REVOKED,
)
from money.services.tokens import hash_token

BASE_ARN = "arn:aws:execute-api:us-east-1:123456789012:abc123/staging"


class BrokenCache(InMemoryInvalidTokenCache):
    def get_invalid_tokens(self, username):
        raise CacheUnavailableError()


class KeylessProvider(StubTokenProvider):
    def decode(self, token, *, allow_expired=False):
        raise SigningKeyNotFoundError()


@pytest.fixture()
def tokens() -> StubTokenProvider:
    return StubTokenProvider()


@pytest.fixture()
def cache() -> InMemoryInvalidTokenCache:
    return InMemoryInvalidTokenCache()


@pytest.fixture()
def service(tokens, cache) -> AuthorizerService:
    return AuthorizerService(token_provider=tokens, invalid_tokens=cache)


def _access(tokens, subject="ana@example.com", minutes=5) -> str:
    return tokens.create_access_token(
        subject=subject, scope="read write", expires_delta=timedelta(minutes=minutes)
    )


def _call(service, token, path="GET/users/ana%40example.com/incomes"):
    return service.authorize(
        AuthorizeIn(authorization_header=f"Bearer {token}", method_arn=f"{BASE_ARN}/{path}")
    )


def _reason(policy) -> str:
    return policy.to_dict()["context"]["reason"]


def test_dto_strips_bearer_prefix():
    assert AuthorizeIn("Bearer a.b.c", "x").token == "a.b.c"
    assert AuthorizeIn("a.b.c", "x").token == "a.b.c"


def test_valid_token_is_allowed(service, tokens):
    policy = _call(service, _access(tokens))
    assert policy.allowed
    assert policy.principal_id == "ana@example.com"
    assert "context" not in policy.to_dict()


def test_path_user_is_compared_case_insensitively(service, tokens):
    assert _call(service, _access(tokens), "GET/users/Ana%40Example.com").allowed


def test_paths_without_user_segment_are_allowed(service, tokens):
    assert _call(service, _access(tokens), "POST/incomes").allowed


@pytest.mark.parametrize("header", ["", "Bearer ", "Bearer abc", "Bearer a.b", "Basic xyz"])
def test_structurally_invalid_token_raises(service, header):
    with pytest.raises(UnauthorizedError):
        service.authorize(AuthorizeIn(authorization_header=header, method_arn=f"{BASE_ARN}/GET/"))


def test_garbage_three_part_token_is_denied(service):
    policy = _call(service, "header.payload.signature")
    assert not policy.allowed
    assert _reason(policy) == REASON_INVALID_TOKEN
    assert policy.principal_id == "user"


def test_expired_token_is_denied(service, tokens, freeze_time):
    with freeze_time("2024-01-01 00:00:00") as frozen:
        token = _access(tokens)
        frozen.tick(timedelta(minutes=6))
        policy = _call(service, token)
    assert not policy.allowed
    assert _reason(policy) == "Unauthorized"


def test_refresh_token_is_denied(service, tokens):
    refresh = tokens.create_refresh_token(subject="ana@example.com", expires_delta=timedelta(days=1))
    policy = _call(service, refresh)
    assert not policy.allowed
    assert _reason(policy) == REASON_INVALID_TOKEN


def test_revoked_token_is_denied(service, tokens, cache):
    token = _access(tokens)
    cache.add_invalid_token("ana@example.com", hash_token(token), 4_102_444_800)
    policy = _call(service, token)
    assert not policy.allowed
    assert _reason(policy) == REASON_TOKEN_REVOKED == "invalid token use detected"


def test_cross_user_access_is_denied(service, tokens):
    policy = _call(service, _access(tokens), "GET/users/bob%40example.com/incomes")
    assert not policy.allowed
    assert policy.principal_id == "ana@example.com"
    assert _reason(policy) == REASON_CROSS_USER


def test_unparseable_method_arn_is_denied(service, tokens):
    policy = service.authorize(AuthorizeIn(f"Bearer {_access(tokens)}", "nonsense"))
    assert not policy.allowed
    assert _reason(policy) == REASON_BAD_ARN


def test_missing_signing_key_becomes_deny_context(cache):
    service = AuthorizerService(token_provider=KeylessProvider(), invalid_tokens=cache)
    policy = _call(service, "a.b.c")
    assert not policy.allowed
    assert _reason(policy) == "signing key not found"


def test_cache_failure_fails_closed(tokens):
    service = AuthorizerService(token_provider=tokens, invalid_tokens=BrokenCache())
    policy = _call(service, _access(tokens))
    assert not policy.allowed


def test_authorize_event_and_deny_all(service, tokens):
    out = service.authorize_event(
        {
            "type": "TOKEN",
            "authorizationToken": f"Bearer {_access(tokens)}",
            "methodArn": f"{BASE_ARN}/GET/incomes",
        }
    )
    assert out["policyDocument"]["Statement"][0]["Effect"] == "Allow"

    denied = service.deny_all("garbage", REASON_INTERNAL).to_dict()
    assert denied["policyDocument"]["Statement"][0]["Effect"] == "Deny"
    assert denied["context"] == {"reason": "internal error"}
