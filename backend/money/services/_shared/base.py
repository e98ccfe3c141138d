# money/services/_shared/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from money.core import errors as api_errors
from money.services._shared.errors import (
    AuthenticationError,
    InfrastructureError,
    MalformedTokenError,
    ServiceError,
    UserNotFoundError,
    ValidationError,
)
from money.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    :param client_ip: Caller address, when known.
    """

    request_id: str | None = None
    client_ip: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Open the read-write unit of work every use case runs in.
    * Centralize error translation and logging.
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()
        self.log = logging.getLogger(type(self).__module__)

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ValidationError):
            # → 400 Bad Request
            return api_errors.BadRequest(str(exc))

        if isinstance(exc, MalformedTokenError):
            # Unparseable credential is a bad request, same text as a forgery
            return api_errors.BadRequest(str(exc), code="invalid_token")

        if isinstance(exc, AuthenticationError):
            # → 401 Unauthorized
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, UserNotFoundError):
            # Token subject without account: reject like any other bad token
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, InfrastructureError):
            # → 503, detail kept generic
            return api_errors.ServiceUnavailable()

        if isinstance(exc, ServiceError):
            return api_errors.BadRequest(str(exc))

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
