# money/infra/redis/redis_invalid_token_cache.py
from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import redis  # type: ignore[import-untyped]

from money.services._shared.errors import (
    CacheUnavailableError,
    InvalidTokensNotFoundError,
    InvalidTTLError,
)
from money.services._shared.ports import InvalidToken, InvalidTokenCache
from money.services._shared.ports.invalid_token_cache import live_entries, merge_entry

log = logging.getLogger(__name__)

T = TypeVar("T")

# Transient client failures worth another attempt
RETRYABLE: tuple[type[Exception], ...] = (redis.ConnectionError, redis.TimeoutError)

# Concurrent writers on the same key before giving up
MAX_WATCH_CONFLICTS = 5


@dataclass(slots=True)
class RedisInvalidTokenCache(InvalidTokenCache):
    """
    Redis-backed invalid-token cache.

    One key per user, ``invalid_tokens:{username}``, holding a JSON list of
    ``{"token", "expire", "created_date"}`` newest first. The key expires
    with its longest-lived entry. Writes run under ``WATCH`` so concurrent
    invalidations for the same user do not drop each other's entries.

    :param r: A Redis client (already connected).
    :param retries: Attempts after the first on connection/timeout errors.
    :param backoff: First retry delay in seconds, doubled on every retry.
    :param sleep: Sleep function, replaceable in tests.
    """

    r: redis.Redis
    retries: int = 3
    backoff: float = 2.0
    sleep: Callable[[float], None] = field(default=time.sleep)

    # -------------------- helpers --------------------

    @staticmethod
    def _k(username: str) -> str:
        return f"invalid_tokens:{username}"

    @staticmethod
    def _now() -> int:
        return int(time.time())

    @staticmethod
    def _decode(raw: Any) -> list[InvalidToken]:
        if raw is None:
            return []
        try:
            items = json.loads(raw)
            return [InvalidToken.from_dict(item) for item in items]
        except (ValueError, TypeError, KeyError) as exc:
            log.error("cache.corrupt_entry", extra={"reason": str(exc)})
            raise CacheUnavailableError() from exc

    def _call(self, op: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` with the bounded exponential retry policy."""
        delay = self.backoff
        for attempt in range(self.retries + 1):
            try:
                return fn()
            except RETRYABLE as exc:
                if attempt >= self.retries:
                    log.error(
                        "cache.retries_exhausted",
                        extra={"attempt": attempt + 1, "reason": f"{op}: {exc}"},
                    )
                    raise CacheUnavailableError() from exc
                log.warning("cache.retry", extra={"attempt": attempt + 1, "reason": op})
                self.sleep(delay)
                delay *= 2
        raise CacheUnavailableError()  # pragma: no cover - loop always returns or raises

    # -------------------- API ------------------------

    def get_invalid_tokens(self, username: str) -> list[InvalidToken]:
        raw = self._call("get", lambda: self.r.get(self._k(username)))
        entries = live_entries(self._decode(raw), now=self._now())
        if not entries:
            raise InvalidTokensNotFoundError()
        return entries

    def add_invalid_token(self, username: str, token_hash: str, ttl: int) -> None:
        now = self._now()
        if int(ttl) < now:
            raise InvalidTTLError()
        new = InvalidToken(token=token_hash, expire=int(ttl), created_date=now)
        self._call("add", lambda: self._append(self._k(username), new, now))

    def _append(self, key: str, new: InvalidToken, now: int) -> None:
        for _ in range(MAX_WATCH_CONFLICTS):
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    entries = merge_entry(self._decode(p.get(key)), new, now=now)
                    payload = json.dumps([e.to_dict() for e in entries])
                    p.multi()
                    p.set(key, payload)
                    p.expireat(key, max(e.expire for e in entries))
                    p.execute()
                return
            except redis.WatchError:
                # Another invalidation for the same user landed first
                continue
        log.error("cache.write_conflicts", extra={"reason": key})
        raise CacheUnavailableError()
