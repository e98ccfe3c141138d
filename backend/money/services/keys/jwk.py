# money/services/keys/jwk.py
"""
JWK helpers for RSA signing keys.

Conversions go through PyJWT so the published document and the verifier
agree on the encoding of ``n`` and ``e`` (unpadded base64url).
"""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Mapping
from typing import Any, cast

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from money.services._shared.errors import SigningKeyNotFoundError

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


def public_key_to_jwk(key: rsa.RSAPublicKey, kid: str) -> dict[str, str]:
    """
    Render ``key`` as a signing JWK.

    :param key: RSA public key.
    :param kid: Key id published alongside the key.
    :returns: ``{"kty", "kid", "use", "n", "e"}``.
    """
    raw = cast(dict[str, Any], RSAAlgorithm.to_jwk(key, as_dict=True))
    return {"kty": "RSA", "kid": kid, "use": "sig", "n": raw["n"], "e": raw["e"]}


def jwk_to_public_key(data: Mapping[str, Any]) -> rsa.RSAPublicKey:
    """
    Parse one JWK into an RSA public key.

    :raises SigningKeyNotFoundError: If the entry is not a usable RSA key.
    """
    try:
        key = jwt.PyJWK(dict(data), algorithm="RS256").key
    except (jwt.PyJWKError, jwt.InvalidKeyError, ValueError, TypeError) as exc:
        raise SigningKeyNotFoundError() from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise SigningKeyNotFoundError()
    return key


def find_jwk(key_set: Mapping[str, Any], kid: str) -> dict[str, Any]:
    """
    Return the entry of ``key_set`` whose ``kid`` equals ``kid``.

    :raises SigningKeyNotFoundError: When no entry matches.
    """
    keys = key_set.get("keys") if isinstance(key_set, Mapping) else None
    for entry in keys or []:
        if isinstance(entry, Mapping) and entry.get("kid") == kid:
            return dict(entry)
    raise SigningKeyNotFoundError()


def thumbprint(key: rsa.RSAPublicKey) -> str:
    """RFC 7638 SHA-256 thumbprint of ``key``, used as a default key id."""
    raw = cast(dict[str, Any], RSAAlgorithm.to_jwk(key, as_dict=True))
    canonical = json.dumps(
        {"e": raw["e"], "kty": "RSA", "n": raw["n"]}, separators=(",", ":"), sort_keys=True
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_key_material(bits: int = KEY_SIZE) -> tuple[str, str, str]:
    """
    Create a fresh keypair.

    :returns: ``(private_pem, public_pem, kid)``; the private key is PKCS#1,
        the public key SubjectPublicKeyInfo.
    """
    private = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=bits)
    private_pem = private.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public = private.public_key()
    public_pem = public.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, public_pem, thumbprint(public)
