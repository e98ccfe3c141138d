from __future__ import annotations

import hmac
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any, Protocol

from money.services._shared.errors import InvalidTokensNotFoundError, InvalidTTLError


@dataclass(frozen=True, slots=True)
class InvalidToken:
    """
    One invalidated token for a user.

    :ivar token: SHA-256 hex digest of the token.
    :ivar expire: Unix time after which the entry can be forgotten.
    :ivar created_date: Unix time the entry was recorded.
    """

    token: str
    expire: int
    created_date: int

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "expire": self.expire, "created_date": self.created_date}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InvalidToken:
        return cls(
            token=str(data["token"]),
            expire=int(data["expire"]),
            created_date=int(data.get("created_date", 0)),
        )


class InvalidTokenCache(Protocol):
    """
    Per-user list of invalidated token hashes.

    Adding the same hash twice is harmless; entries past ``expire`` are
    dropped lazily on the next read or write.
    """

    def get_invalid_tokens(self, username: str) -> list[InvalidToken]:
        """
        Return the user's unexpired entries, newest first.

        :raises InvalidTokensNotFoundError: When nothing is recorded.
        """

    def add_invalid_token(self, username: str, token_hash: str, ttl: int) -> None:
        """
        Record ``token_hash`` as invalid until Unix time ``ttl``.

        :raises InvalidTTLError: If ``ttl`` is already in the past.
        """


# --------------------------------------------------------------------------- #
# Shared list semantics (used by every adapter)
# --------------------------------------------------------------------------- #


def live_entries(entries: Iterable[InvalidToken], *, now: int) -> list[InvalidToken]:
    """Drop entries whose expiry has passed."""
    return [e for e in entries if e.expire >= now]


def merge_entry(
    entries: Iterable[InvalidToken], new: InvalidToken, *, now: int
) -> list[InvalidToken]:
    """
    Prepend ``new`` to ``entries``, pruning expired ones and duplicates.

    A hash appears once; it keeps the later of the two expiries.

    :raises InvalidTTLError: If ``new.expire`` is before ``now``.
    """
    if new.expire < now:
        raise InvalidTTLError()
    head = new
    rest: list[InvalidToken] = []
    for entry in live_entries(entries, now=now):
        if entry.token == new.token:
            if entry.expire > head.expire:
                head = replace(head, expire=entry.expire)
            continue
        rest.append(entry)
    return [head, *rest]


def contains_hash(entries: Iterable[InvalidToken], token_hash: str) -> bool:
    """Constant-time membership test of ``token_hash``."""
    found = False
    for entry in entries:
        if hmac.compare_digest(entry.token, token_hash):
            found = True
    return found


def is_token_invalidated(cache: InvalidTokenCache, username: str, token_hash: str) -> bool:
    """Return ``True`` when ``token_hash`` is listed and unexpired for ``username``."""
    try:
        entries = cache.get_invalid_tokens(username)
    except InvalidTokensNotFoundError:
        return False
    return contains_hash(entries, token_hash)


class InMemoryInvalidTokenCache(InvalidTokenCache):
    """
    Process-local cache with the same list semantics as the Redis adapter.

    .. note::
       Uses a threading lock; entries are not shared across processes.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock
        self._entries: dict[str, list[InvalidToken]] = {}
        self._lock = threading.Lock()

    def _now(self) -> int:
        return int(self._clock() if self._clock else time.time())

    def get_invalid_tokens(self, username: str) -> list[InvalidToken]:
        with self._lock:
            entries = live_entries(self._entries.get(username, []), now=self._now())
            if not entries:
                raise InvalidTokensNotFoundError()
            return list(entries)

    def add_invalid_token(self, username: str, token_hash: str, ttl: int) -> None:
        now = self._now()
        new = InvalidToken(token=token_hash, expire=int(ttl), created_date=now)
        with self._lock:
            self._entries[username] = merge_entry(self._entries.get(username, []), new, now=now)
