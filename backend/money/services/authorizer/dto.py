# money/services/authorizer/dto.py
from __future__ import annotations

from dataclasses import dataclass

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True, slots=True)
class AuthorizeIn:
    """
    Input DTO for one authorizer call.

    :param authorization_header: Raw ``Authorization`` header value.
    :type authorization_header: str
    :param method_arn: ARN of the method being invoked.
    :type method_arn: str
    """

    authorization_header: str
    method_arn: str

    @property
    def token(self) -> str:
        return (self.authorization_header or "").replace(BEARER_PREFIX, "").strip()
