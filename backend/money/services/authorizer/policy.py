# money/services/authorizer/policy.py
"""
IAM policy documents for API Gateway custom authorizers.

A method ARN looks like::

    arn:aws:execute-api:{region}:{account}:{api_id}/{stage}/{VERB}/{resource}

Statements are built against the same region/account/API/stage so a policy
never grants more than the API that asked for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import unquote

POLICY_VERSION = "2012-10-17"
INVOKE_ACTION = "execute-api:Invoke"
DEFAULT_PRINCIPAL = "user"

# First resource segment that embeds an account identifier
USER_PATH_SEGMENT = "users"


class Effect(str, Enum):
    ALLOW = "Allow"
    DENY = "Deny"


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    ALL = "*"


@dataclass(frozen=True, slots=True)
class MethodArn:
    """
    Parsed ``methodArn`` of an authorizer request.

    :ivar region: AWS region of the API.
    :ivar account_id: Owning AWS account.
    :ivar api_id: API Gateway REST API id.
    :ivar stage: Deployment stage.
    :ivar verb: HTTP verb of the call (``*`` when absent).
    :ivar resource: Resource path without the leading slash.
    """

    region: str = "*"
    account_id: str = "*"
    api_id: str = "*"
    stage: str = "*"
    verb: str = "*"
    resource: str = ""

    @classmethod
    def parse(cls, arn: str) -> MethodArn:
        """
        Split ``arn`` into its parts.

        :raises ValueError: If ``arn`` is not an ``execute-api`` method ARN.
        """
        parts = (arn or "").split(":", 5)
        if len(parts) != 6 or parts[0] != "arn" or parts[2] != "execute-api":
            raise ValueError(f"not an execute-api method ARN: {arn!r}")
        path = parts[5].split("/", 3)
        if len(path) < 2 or not path[0] or not path[1]:
            raise ValueError(f"method ARN without api id and stage: {arn!r}")
        return cls(
            region=parts[3],
            account_id=parts[4],
            api_id=path[0],
            stage=path[1],
            verb=path[2] if len(path) > 2 and path[2] else "*",
            resource=path[3] if len(path) > 3 else "",
        )

    def path_user(self) -> str | None:
        """Return the URL-decoded identifier after ``users/``, if the path has one."""
        segments = [s for s in self.resource.split("/") if s]
        if len(segments) >= 2 and segments[0] == USER_PATH_SEGMENT:
            return unquote(segments[1])
        return None


@dataclass(slots=True)
class AuthorizerPolicy:
    """
    Builder for the authorizer response.

    Example
    -------
    >>> policy = AuthorizerPolicy.for_arn("ana@example.com", MethodArn.parse(arn))
    >>> policy.allow_all_methods()
    >>> policy.to_dict()["policyDocument"]["Statement"][0]["Effect"]
    'Allow'
    """

    principal_id: str
    region: str = "*"
    account_id: str = "*"
    api_id: str = "*"
    stage: str = "*"
    statements: list[dict[str, Any]] = field(default_factory=list)
    context: dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_arn(cls, principal_id: str, arn: MethodArn) -> AuthorizerPolicy:
        return cls(
            principal_id=principal_id,
            region=arn.region,
            account_id=arn.account_id,
            api_id=arn.api_id,
            stage=arn.stage,
        )

    def resource_arn(self, verb: HttpVerb, resource: str) -> str:
        return (
            f"arn:aws:execute-api:{self.region}:{self.account_id}:"
            f"{self.api_id}/{self.stage}/{verb.value}/{resource.lstrip('/')}"
        )

    def add_method(self, effect: Effect, verb: HttpVerb, resource: str) -> None:
        self.statements.append(
            {
                "Action": [INVOKE_ACTION],
                "Effect": effect.value,
                "Resource": [self.resource_arn(verb, resource)],
            }
        )

    def allow_all_methods(self) -> None:
        self.add_method(Effect.ALLOW, HttpVerb.ALL, "*")

    def deny_all_methods(self) -> None:
        self.add_method(Effect.DENY, HttpVerb.ALL, "*")

    def allow_method(self, verb: HttpVerb, resource: str) -> None:
        self.add_method(Effect.ALLOW, verb, resource)

    def deny_method(self, verb: HttpVerb, resource: str) -> None:
        self.add_method(Effect.DENY, verb, resource)

    @property
    def allowed(self) -> bool:
        """``True`` when at least one statement allows and none denies."""
        effects = {s["Effect"] for s in self.statements}
        return Effect.ALLOW.value in effects and Effect.DENY.value not in effects

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "principalId": self.principal_id,
            "policyDocument": {"Version": POLICY_VERSION, "Statement": list(self.statements)},
        }
        if self.context:
            out["context"] = dict(self.context)
        return out
