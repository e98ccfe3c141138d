"""HTTP form of the gateway authorizer for non-Lambda deployments."""

from __future__ import annotations

from flask import Blueprint, request

from money.api.deps import container, json_response, service_context, timing, translated
from money.schemas import AuthorizeRequestSchema
from money.services.authorizer import AuthorizeIn

bp = Blueprint("authorizer", __name__)

authorize_schema = AuthorizeRequestSchema()


@bp.post("/authorize")
@timing
def authorize():
    """Return the IAM policy for ``{authorization_header, method_arn}``.

    A token without three segments is a 401; every other outcome is a 200
    carrying an Allow or Deny policy.
    """

    data = authorize_schema.load(request.get_json(silent=True) or {})
    service = container().authorizer_service(service_context())
    with translated(service):
        policy = service.authorize(AuthorizeIn(**data))
    return json_response(policy.to_dict())
