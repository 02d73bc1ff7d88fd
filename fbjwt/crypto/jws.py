"""Thin seam over PyJWT for JWS parsing and RS256 signature checks."""

import json
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt.algorithms import get_default_algorithms
from pydantic import BaseModel, ConfigDict

SUPPORTED_ALGORITHM = "RS256"

_rs256 = get_default_algorithms()[SUPPORTED_ALGORITHM]


class ParsedToken(BaseModel):
    """Unverified header, claims and signature of a compact JWS."""

    model_config = ConfigDict(frozen=True)

    header: dict[str, Any]
    claims: dict[str, Any]
    signature: bytes
    signing_input: bytes


def parse(raw: str) -> ParsedToken:
    """Split a compact JWS without verifying it.

    Raises jwt.DecodeError if the token is not three base64url segments
    with a JSON object header and payload.
    """
    decoded = jwt.api_jws.decode_complete(raw, options={"verify_signature": False})
    try:
        claims = json.loads(decoded["payload"])
    except ValueError as err:
        raise jwt.DecodeError("Invalid payload string") from err
    if not isinstance(claims, dict):
        raise jwt.DecodeError("Invalid payload string: must be a json object")
    signing_input, _, _ = raw.rpartition(".")
    return ParsedToken(
        header=decoded["header"],
        claims=claims,
        signature=decoded["signature"],
        signing_input=signing_input.encode(),
    )


def verify_signature(
    key: RSAPublicKey, signing_input: bytes, signature: bytes
) -> bool:
    """Check an RS256 signature over the signing input."""
    return _rs256.verify(signing_input, key, signature)
