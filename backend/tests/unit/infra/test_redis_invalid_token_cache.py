# tests/unit/infra/test_redis_invalid_token_cache.py
"""
Unit tests for RedisInvalidTokenCache using fakeredis.

These tests exercise the main flows:
- add + get (storage format, key expiry)
- duplicate hashes and lazy pruning
- TTL validation
- bounded retry on connection errors
- corrupt payloads
"""

from __future__ import annotations

import json
import time

import pytest
import redis

from money.infra.redis.redis_invalid_token_cache import RedisInvalidTokenCache
from money.services._shared.errors import (
    CacheUnavailableError,
    InvalidTokensNotFoundError,
    InvalidTTLError,
)
from money.services._shared.ports import is_token_invalidated

USER = "ana@example.com"
KEY = f"invalid_tokens:{USER}"


def _in(seconds: int) -> int:
    return int(time.time()) + seconds


class FlakyRedis:
    """Fails ``failures`` times with a connection error, then behaves like ``inner``."""

    def __init__(self, inner, failures: int) -> None:
        self.inner = inner
        self.failures = failures
        self.calls = 0

    def get(self, key):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise redis.ConnectionError("connection reset")
        return self.inner.get(key)


@pytest.fixture
def cache(fake_redis) -> RedisInvalidTokenCache:
    return RedisInvalidTokenCache(fake_redis, backoff=0)


def test_add_stores_json_list_with_key_expiry(cache, fake_redis):
    expire = _in(120)
    cache.add_invalid_token(USER, "h1", expire)

    stored = json.loads(fake_redis.get(KEY))
    assert stored == [{"token": "h1", "expire": expire, "created_date": stored[0]["created_date"]}]
    assert 0 < fake_redis.ttl(KEY) <= 120


def test_get_returns_newest_first(cache):
    cache.add_invalid_token(USER, "h1", _in(60))
    cache.add_invalid_token(USER, "h2", _in(600))
    assert [e.token for e in cache.get_invalid_tokens(USER)] == ["h2", "h1"]


def test_key_expiry_tracks_longest_entry(cache, fake_redis):
    cache.add_invalid_token(USER, "long", _in(600))
    cache.add_invalid_token(USER, "short", _in(60))
    assert fake_redis.ttl(KEY) > 60


def test_duplicate_hash_is_stored_once(cache):
    cache.add_invalid_token(USER, "h1", _in(60))
    cache.add_invalid_token(USER, "h1", _in(60))
    assert len(cache.get_invalid_tokens(USER)) == 1
    assert is_token_invalidated(cache, USER, "h1")


def test_expired_entries_are_pruned(cache, fake_redis):
    past = int(time.time()) - 10
    fake_redis.set(KEY, json.dumps([{"token": "old", "expire": past, "created_date": past - 5}]))
    with pytest.raises(InvalidTokensNotFoundError):
        cache.get_invalid_tokens(USER)

    cache.add_invalid_token(USER, "new", _in(60))
    assert [e["token"] for e in json.loads(fake_redis.get(KEY))] == ["new"]


def test_missing_user_raises_not_found(cache):
    with pytest.raises(InvalidTokensNotFoundError):
        cache.get_invalid_tokens("nobody@example.com")


def test_past_ttl_is_rejected(cache, fake_redis):
    with pytest.raises(InvalidTTLError):
        cache.add_invalid_token(USER, "h1", int(time.time()) - 1)
    assert fake_redis.get(KEY) is None


def test_retries_with_exponential_backoff(fake_redis):
    delays: list[float] = []
    flaky = FlakyRedis(fake_redis, failures=2)
    cache = RedisInvalidTokenCache(flaky, retries=3, backoff=2.0, sleep=delays.append)

    with pytest.raises(InvalidTokensNotFoundError):
        cache.get_invalid_tokens(USER)
    assert flaky.calls == 3
    assert delays == [2.0, 4.0]


def test_gives_up_after_bounded_retries(fake_redis):
    delays: list[float] = []
    flaky = FlakyRedis(fake_redis, failures=10)
    cache = RedisInvalidTokenCache(flaky, retries=3, backoff=2.0, sleep=delays.append)

    with pytest.raises(CacheUnavailableError):
        cache.get_invalid_tokens(USER)
    assert flaky.calls == 4
    assert delays == [2.0, 4.0, 8.0]


def test_non_retryable_errors_propagate(fake_redis):
    class Broken:
        def get(self, key):
            raise redis.ResponseError("WRONGTYPE")

    with pytest.raises(redis.ResponseError):
        RedisInvalidTokenCache(Broken(), sleep=lambda _: None).get_invalid_tokens(USER)


@pytest.mark.parametrize("payload", ["not json", json.dumps([{"expire": 1}]), json.dumps(7)])
def test_corrupt_payload_is_unavailable(cache, fake_redis, payload):
    fake_redis.set(KEY, payload)
    with pytest.raises(CacheUnavailableError):
        cache.get_invalid_tokens(USER)
