# money/infra/secrets/aws_secret_provider.py
from __future__ import annotations

import logging
import threading
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from money.services._shared.errors import SecretNotFoundError, SecretStoreError
from money.services._shared.ports import SecretProvider

log = logging.getLogger(__name__)

NOT_FOUND_CODE = "ResourceNotFoundException"


def build_client(
    *, region: str, timeout: float = 3.0, max_attempts: int = 3
) -> Any:
    """Secrets Manager client with bounded timeouts and standard retries."""
    config = Config(
        region_name=region,
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    return boto3.client("secretsmanager", config=config)


class AWSSecretProvider(SecretProvider):
    """
    AWS Secrets Manager adapter with a process-wide cache.

    Successful lookups are kept for the life of the process; rotation works
    by publishing new secret names, not by changing values in place. Two
    threads missing the cache at once both fetch, which is harmless.

    :param client: ``secretsmanager`` client (see :func:`build_client`).
    """

    def __init__(self, client: Any) -> None:
        self.client = client
        self._cache: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_secret(self, name: str) -> str:
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached

        try:
            resp = self.client.get_secret_value(SecretId=name)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == NOT_FOUND_CODE:
                log.error("secrets.not_found", extra={"reason": name})
                raise SecretNotFoundError(name) from exc
            log.error("secrets.fetch_failed", extra={"reason": f"{name}: {code}"})
            raise SecretStoreError() from exc
        except BotoCoreError as exc:
            log.error("secrets.fetch_failed", extra={"reason": f"{name}: {exc}"})
            raise SecretStoreError() from exc

        value = resp.get("SecretString")
        if value is None:
            log.error("secrets.not_a_string", extra={"reason": name})
            raise SecretStoreError()

        with self._lock:
            self._cache[name] = value
        return value

    def put_secret(self, name: str, value: str) -> None:
        """
        Store ``value`` under ``name``, creating the secret when missing.

        Used by the key generation command.
        """
        try:
            self.client.put_secret_value(SecretId=name, SecretString=value)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") != NOT_FOUND_CODE:
                raise SecretStoreError() from exc
            try:
                self.client.create_secret(Name=name, SecretString=value)
            except ClientError as create_exc:
                raise SecretStoreError() from create_exc
        with self._lock:
            self._cache[name] = value
