"""
Abstract Unit of Work contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from money.repositories import UserRepository


class UnitOfWork(ABC):
    """
    Transaction boundary of one auth use case.

    Token hashes and password changes for an account are written through
    ``users`` and become visible together on commit.
    """

    users: UserRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
