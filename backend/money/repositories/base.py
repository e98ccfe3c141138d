"""Repository base for SQLAlchemy 2.x.

Repositories only read and write rows. Commit and rollback belong to the
Unit of Work; token issuing and comparison belong to the token services.
"""

from __future__ import annotations

from typing import Generic, TypeVar, cast

from sqlalchemy.orm import Session

from money.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Persistence helpers bound to one session.

    Subclasses set ``model`` to the mapped class they manage.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session of the enclosing Unit of Work; the
            Flask-scoped ``db.session`` when omitted.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()
