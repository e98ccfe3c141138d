"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class SignupSchema(Schema):
    """Input payload for account creation.

    Presence and format of ``email``/``password`` are checked by the auth
    service so the client gets the same messages on every entry point.
    """

    class Meta:
        unknown = EXCLUDE

    email = fields.String(load_default="", validate=validate.Length(max=254))
    password = fields.String(load_default="", validate=validate.Length(max=128))
    full_name = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=100))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    class Meta:
        unknown = EXCLUDE

    email = fields.String(load_default="", validate=validate.Length(max=254))
    password = fields.String(load_default="", validate=validate.Length(max=128))


class TokenResponseSchema(Schema):
    """Response payload containing an access token."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")
    expires_in = fields.Integer(required=True)
