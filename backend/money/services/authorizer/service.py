# money/services/authorizer/service.py
from __future__ import annotations

from typing import Any

from money.services._shared.base import BaseService, ServiceContext
from money.services._shared.errors import (
    InfrastructureError,
    ServiceError,
    UnauthorizedError,
)
from money.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    InvalidTokenCache,
    TokenProvider,
    is_token_invalidated,
)
from money.services.authorizer.dto import AuthorizeIn
from money.services.authorizer.policy import DEFAULT_PRINCIPAL, AuthorizerPolicy, MethodArn
from money.services.tokens.hashing import hash_token

REASON_INVALID_TOKEN = "invalid token"
REASON_TOKEN_REVOKED = "invalid token use detected"
REASON_CROSS_USER = "access to another user's resources is not allowed"
REASON_BAD_ARN = "invalid method arn"
REASON_INTERNAL = "internal error"


class AuthorizerService(BaseService):
    """
    Turn a bearer token into an Allow or Deny policy.

    Only a structurally broken token (fewer than three segments) raises;
    every other failure is reported as a Deny-all policy whose ``context``
    carries the reason, so the gateway always gets a well-formed answer.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        invalid_tokens: InvalidTokenCache,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.invalid_tokens = invalid_tokens

    def authorize(self, dto: AuthorizeIn) -> AuthorizerPolicy:
        """
        Evaluate one authorizer request.

        :param dto: Authorization header and method ARN.
        :returns: Policy for the gateway.
        :raises UnauthorizedError: If the token does not have three segments.
        """
        token = dto.token
        if len(token.split(".")) < 3:
            self.log.warning("authorizer.invalid_token_length")
            raise UnauthorizedError()

        try:
            arn = MethodArn.parse(dto.method_arn)
        except ValueError:
            return self._deny(DEFAULT_PRINCIPAL, MethodArn(), REASON_BAD_ARN)

        try:
            claims = self.tokens.decode(token)
        except InfrastructureError as exc:
            self.log.error("authorizer.key_resolution_failed", extra={"reason": str(exc)})
            return self._deny(DEFAULT_PRINCIPAL, arn, str(exc))
        except ServiceError as exc:
            return self._deny(DEFAULT_PRINCIPAL, arn, str(exc))

        subject = str(claims.get("sub") or "")
        if not subject or claims.get("type") != ACCESS_TOKEN_TYPE:
            return self._deny(subject or DEFAULT_PRINCIPAL, arn, REASON_INVALID_TOKEN)

        try:
            revoked = is_token_invalidated(self.invalid_tokens, subject, hash_token(token))
        except InfrastructureError as exc:
            self.log.error("authorizer.cache_failed", extra={"reason": str(exc)})
            return self._deny(subject, arn, str(exc))
        if revoked:
            self.log.warning("authorizer.revoked_token_use", extra={"principal": subject})
            return self._deny(subject, arn, REASON_TOKEN_REVOKED)

        path_user = arn.path_user()
        if path_user is not None and path_user.strip().lower() != subject.lower():
            return self._deny(subject, arn, REASON_CROSS_USER)

        policy = AuthorizerPolicy.for_arn(subject, arn)
        policy.allow_all_methods()
        self.log.info("authorizer.allowed", extra={"principal": subject})
        return policy

    def authorize_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Evaluate an API Gateway TOKEN authorizer event and return the response dict."""
        dto = AuthorizeIn(
            authorization_header=str(event.get("authorizationToken") or ""),
            method_arn=str(event.get("methodArn") or ""),
        )
        return self.authorize(dto).to_dict()

    def deny_all(self, method_arn: str, reason: str) -> AuthorizerPolicy:
        """Deny-all policy for ``method_arn`` (or any ARN when it does not parse)."""
        try:
            arn = MethodArn.parse(method_arn)
        except ValueError:
            arn = MethodArn()
        return self._deny(DEFAULT_PRINCIPAL, arn, reason)

    def _deny(self, principal: str, arn: MethodArn, reason: str) -> AuthorizerPolicy:
        policy = AuthorizerPolicy.for_arn(principal, arn)
        policy.deny_all_methods()
        policy.context["reason"] = reason
        self.log.info("authorizer.denied", extra={"principal": principal, "reason": reason})
        return policy
