# tests/unit/services/test_authorizer_policy.py
"""MethodArn parsing and the IAM policy builder."""

from __future__ import annotations

import pytest

from money.services.authorizer import AuthorizerPolicy, Effect, HttpVerb, MethodArn

ARN = "arn:aws:execute-api:us-east-1:123456789012:abc123/staging/GET/users/ana%40example.com/expenses"


def test_parse_full_arn():
    arn = MethodArn.parse(ARN)
    assert (arn.region, arn.account_id, arn.api_id, arn.stage, arn.verb) == (
        "us-east-1",
        "123456789012",
        "abc123",
        "staging",
        "GET",
    )
    assert arn.resource == "users/ana%40example.com/expenses"
    assert arn.path_user() == "ana@example.com"


def test_parse_without_verb_or_resource():
    arn = MethodArn.parse("arn:aws:execute-api:eu-west-1:1:api/prod")
    assert arn.verb == "*"
    assert arn.resource == ""
    assert arn.path_user() is None


@pytest.mark.parametrize(
    "raw",
    ["", "not-an-arn", "arn:aws:lambda:us-east-1:1:function/x", "arn:aws:execute-api:us-east-1:1:api"],
)
def test_parse_rejects_invalid(raw):
    with pytest.raises(ValueError):
        MethodArn.parse(raw)


@pytest.mark.parametrize("resource", ["incomes/1", "users", "users/", "periods/users/x"])
def test_path_user_only_for_users_prefix(resource):
    assert MethodArn(resource=resource).path_user() is None


def test_allow_all_document():
    policy = AuthorizerPolicy.for_arn("ana@example.com", MethodArn.parse(ARN))
    policy.allow_all_methods()
    assert policy.allowed
    assert policy.to_dict() == {
        "principalId": "ana@example.com",
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": ["execute-api:Invoke"],
                    "Effect": "Allow",
                    "Resource": ["arn:aws:execute-api:us-east-1:123456789012:abc123/staging/*/*"],
                }
            ],
        },
    }


def test_deny_with_context():
    policy = AuthorizerPolicy.for_arn("user", MethodArn())
    policy.deny_all_methods()
    policy.context["reason"] = "invalid token"
    out = policy.to_dict()
    assert not policy.allowed
    assert out["policyDocument"]["Statement"][0]["Resource"] == ["arn:aws:execute-api:*:*:*/*/*/*"]
    assert out["context"] == {"reason": "invalid token"}


def test_individual_methods_and_mixed_effects():
    policy = AuthorizerPolicy.for_arn("ana", MethodArn.parse(ARN))
    policy.allow_method(HttpVerb.GET, "/users/ana/incomes")
    policy.deny_method(HttpVerb.DELETE, "users/ana")
    statements = policy.to_dict()["policyDocument"]["Statement"]
    assert statements[0]["Resource"] == [
        "arn:aws:execute-api:us-east-1:123456789012:abc123/staging/GET/users/ana/incomes"
    ]
    assert statements[1]["Effect"] == Effect.DENY.value
    assert not policy.allowed


def test_empty_policy_is_not_allowed():
    assert not AuthorizerPolicy(principal_id="x").allowed
