"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, SignupSchema, TokenResponseSchema
from .authorizer import AuthorizeRequestSchema

__all__ = [
    "AuthorizeRequestSchema",
    "LoginSchema",
    "SignupSchema",
    "TokenResponseSchema",
]
