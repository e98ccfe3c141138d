# money/infra/jwks/remote_key_resolver.py
from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from requests.adapters import HTTPAdapter
from urllib3 import Retry

from money.services._shared.errors import KeySetUnavailableError, SigningKeyNotFoundError
from money.services._shared.ports import KeyResolver
from money.services.keys import find_jwk, jwk_to_public_key

log = logging.getLogger(__name__)

JWKS_PATH = "/auth/jwks"


def build_session(max_retries: int, backoff_factor: float = 0.5) -> requests.Session:
    """
    HTTP session with bounded retries on connection errors and 5xx answers.

    :param max_retries: Retries after the first attempt.
    :param backoff_factor: urllib3 exponential backoff base, in seconds.
    """
    retry = Retry(
        total=max_retries,
        connect=max_retries,
        read=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RemoteKeyResolver(KeyResolver):
    """
    Resolve verification keys from ``{issuer}/auth/jwks``.

    The key set is kept for ``cache_ttl`` seconds per issuer. An unknown
    ``kid`` forces one refetch, which picks up a rotated key without waiting
    for the cache to lapse. A kid still absent after that refetch is
    remembered for ``miss_ttl`` seconds and rejected without another request.

    :param session: Preconfigured session; built with retries when omitted.
    :param timeout: Connect/read timeout in seconds for each attempt.
    :param max_retries: Retries for the default session.
    :param cache_ttl: Seconds a fetched key set stays valid (0 disables).
    :param miss_ttl: Seconds an unknown kid is rejected from memory (0 disables).
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = 3.0,
        max_retries: int = 3,
        cache_ttl: float = 300.0,
        miss_ttl: float = 30.0,
    ) -> None:
        self.session = session or build_session(max_retries)
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.miss_ttl = miss_ttl
        self._cache: dict[str, tuple[float, dict[str, Any]]] = {}
        self._misses: dict[tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def fetch_key_set(self, issuer: str) -> dict[str, Any]:
        """
        Download the key set published by ``issuer``.

        :raises KeySetUnavailableError: Network failure, non-2xx answer or a
            body that is not a JSON object.
        """
        url = issuer.rstrip("/") + JWKS_PATH
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.error("jwks.fetch_failed", extra={"reason": str(exc)}, exc_info=True)
            raise KeySetUnavailableError() from exc
        if not isinstance(data, dict):
            log.error("jwks.unexpected_body", extra={"reason": type(data).__name__})
            raise KeySetUnavailableError()
        with self._lock:
            self._cache[issuer] = (time.monotonic(), data)
        return data

    def _cached(self, issuer: str) -> dict[str, Any] | None:
        if self.cache_ttl <= 0:
            return None
        with self._lock:
            hit = self._cache.get(issuer)
        if hit is None or time.monotonic() - hit[0] > self.cache_ttl:
            return None
        return hit[1]

    def _recently_missed(self, issuer: str, kid: str) -> bool:
        if self.miss_ttl <= 0:
            return False
        with self._lock:
            missed_at = self._misses.get((issuer, kid))
        return missed_at is not None and time.monotonic() - missed_at <= self.miss_ttl

    def _remember_miss(self, issuer: str, kid: str) -> None:
        if self.miss_ttl <= 0:
            return
        now = time.monotonic()
        with self._lock:
            # Drop lapsed entries
            self._misses = {
                key: at for key, at in self._misses.items() if now - at <= self.miss_ttl
            }
            self._misses[(issuer, kid)] = now

    def resolve(self, kid: str, *, issuer: str) -> RSAPublicKey:
        if self._recently_missed(issuer, kid):
            raise SigningKeyNotFoundError()
        cached = self._cached(issuer)
        if cached is not None:
            try:
                return jwk_to_public_key(find_jwk(cached, kid))
            except SigningKeyNotFoundError:
                log.info("jwks.kid_miss_refetch", extra={"kid": kid})
        key_set = self.fetch_key_set(issuer)
        try:
            return jwk_to_public_key(find_jwk(key_set, kid))
        except SigningKeyNotFoundError:
            log.error("jwks.signing_key_not_found", extra={"kid": kid})
            self._remember_miss(issuer, kid)
            raise
