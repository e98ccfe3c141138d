from money.services.authorizer.dto import AuthorizeIn
from money.services.authorizer.policy import (
    AuthorizerPolicy,
    Effect,
    HttpVerb,
    MethodArn,
)
from money.services.authorizer.service import AuthorizerService

__all__ = [
    "AuthorizeIn",
    "AuthorizerPolicy",
    "AuthorizerService",
    "Effect",
    "HttpVerb",
    "MethodArn",
]
