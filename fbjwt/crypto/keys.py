"""Conversion of published key material into RSA public keys."""

from functools import lru_cache

import jwt
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

PEM_CERTIFICATE_MARKER = "-----BEGIN CERTIFICATE-----"
PEM_MARKER = "-----BEGIN "


@lru_cache(maxsize=64)
def load_public_key(material: str) -> RSAPublicKey:
    """Load an RSA public key from a PEM certificate, PEM key, or JWK JSON.

    Raises ValueError when the material is not an RSA public key in one of
    those encodings.
    """
    text = material.strip()
    if text.startswith(PEM_CERTIFICATE_MARKER):
        loaded = x509.load_pem_x509_certificate(text.encode()).public_key()
    elif text.startswith(PEM_MARKER):
        loaded = serialization.load_pem_public_key(text.encode())
    elif text.startswith("{"):
        try:
            loaded = jwt.PyJWK.from_json(text).key
        except jwt.PyJWTError as err:
            raise ValueError(f"Invalid JWK: {err}") from err
    else:
        raise ValueError("Unrecognised key material")

    if not isinstance(loaded, RSAPublicKey):
        raise ValueError("Key material is not an RSA public key")
    return loaded
