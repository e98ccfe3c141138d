"""Schemas for the HTTP form of the gateway authorizer."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class AuthorizeRequestSchema(Schema):
    """``{authorization_header, method_arn}`` as sent by a non-Lambda gateway."""

    class Meta:
        unknown = EXCLUDE

    authorization_header = fields.String(required=True)
    method_arn = fields.String(required=True)
