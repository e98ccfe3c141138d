"""Tiny helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager

from money.services._shared.ports import InMemorySecretProvider


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.

    Yields
    ------
    None
        Control enters the managed block when the exception is absent.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


class RecordingSecretProvider(InMemorySecretProvider):
    """In-memory secrets that remember which names were looked up."""

    def __init__(self, secrets=None) -> None:
        super().__init__(secrets)
        self.lookups: list[str] = []

    def get_secret(self, name: str) -> str:
        self.lookups.append(name)
        return super().get_secret(name)
