"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`money.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``money.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Auth service (from ``money.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`SignupIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`SessionOut`

- Authorizer service (from ``money.services.authorizer``)
    * :class:`AuthorizerService`
    * :class:`AuthorizeIn`, :class:`AuthorizerPolicy`
"""

from __future__ import annotations

from money.services._shared.base import BaseService, ServiceContext
from money.services.auth import (
    AuthService,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SessionOut,
    SignupIn,
)
from money.services.authorizer import AuthorizeIn, AuthorizerPolicy, AuthorizerService

__all__ = [
    "AuthService",
    "AuthorizeIn",
    "AuthorizerPolicy",
    "AuthorizerService",
    "BaseService",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "ServiceContext",
    "SessionOut",
    "SignupIn",
]
