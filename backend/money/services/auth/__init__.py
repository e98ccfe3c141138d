from money.services.auth.dto import LoginIn, LogoutIn, RefreshIn, SessionOut, SignupIn
from money.services.auth.service import AuthService, validate_credentials

__all__ = [
    "AuthService",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "SessionOut",
    "SignupIn",
    "validate_credentials",
]
