"""Shared test fixtures for fbjwt."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from pydantic import BaseModel

from fbjwt.core.clock import FrozenClock
from fbjwt.keys.types import StaticKeys

PROJECT_ID = "demo-project"
KEY_ID = "key-1"
ID_TOKEN_ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"
SESSION_COOKIE_ISSUER = f"https://session.firebase.google.com/{PROJECT_ID}"
NOW = datetime(2026, 1, 1, tzinfo=UTC)

TokenFactory = Callable[..., str]


class SigningKey(BaseModel):
    """An RSA keypair plus a self-signed certificate for its public half."""

    private_key_pem: str
    public_key_pem: str
    certificate_pem: str


def _generate_signing_key() -> SigningKey:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = x509.Name(
        [x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.example.com")]
    )
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2025, 1, 1, tzinfo=UTC))
        .not_valid_after(datetime(2030, 1, 1, tzinfo=UTC))
        .sign(private_key, hashes.SHA256())
    )
    return SigningKey(
        private_key_pem=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode(),
        public_key_pem=private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode(),
        certificate_pem=certificate.public_bytes(serialization.Encoding.PEM).decode(),
    )


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient Firebase settings out of the tests."""
    for name in ("FIREBASE_AUTH_EMULATOR_HOST", "FIREBASE_PROJECT_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def signing_key() -> SigningKey:
    return _generate_signing_key()


@pytest.fixture(scope="session")
def other_signing_key() -> SigningKey:
    return _generate_signing_key()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def static_keys(signing_key: SigningKey) -> StaticKeys:
    return StaticKeys.with_values({KEY_ID: signing_key.certificate_pem})


@pytest.fixture
def make_token(signing_key: SigningKey, clock: FrozenClock) -> TokenFactory:
    """Build an RS256 ID token; claim overrides set to None are dropped."""

    def _make(
        *,
        kid: str | None = KEY_ID,
        private_key_pem: str | None = None,
        **overrides: Any,
    ) -> str:
        now = int(clock.now().timestamp())
        claims: dict[str, Any] = {
            "iss": ID_TOKEN_ISSUER,
            "aud": PROJECT_ID,
            "sub": "user-1",
            "iat": now - 60,
            "auth_time": now - 60,
            "exp": now + 3600,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(
            claims,
            private_key_pem or signing_key.private_key_pem,
            algorithm="RS256",
            headers=headers,
        )

    return _make
