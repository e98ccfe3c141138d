"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from money.core.extensions import db
from money.repositories import UserRepository
from money.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Commits when the block exits cleanly and rolls back otherwise, so a
    refresh that fails half-way never leaves a partially rotated user row.

    :ivar users: Repository bound to the shared session.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = session if session is not None else db.session
        self.users = UserRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session starts its transaction on first use.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
