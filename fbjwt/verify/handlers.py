"""Verification handler chain.

Each stage wraps an inner handler, lets it produce a token, checks one
concern and hands the token outwards. ``build_handler_chain`` puts the
stages together in the order parse, signature, claims, revocation.
"""

import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

import jwt

from fbjwt.core.clock import Clock, SystemClock
from fbjwt.core.errors import (
    ExpiredToken,
    InvalidAudience,
    InvalidIssuer,
    InvalidSignature,
    InvalidSubject,
    InvalidTenant,
    IssuedInTheFuture,
    MalformedToken,
    RevokedToken,
    SignatureVerificationFailed,
    UnknownKeyId,
    WrongTokenKind,
)
from fbjwt.crypto.jws import SUPPORTED_ALGORITHM, parse, verify_signature
from fbjwt.crypto.keys import load_public_key
from fbjwt.keys.types import KeyFetcher
from fbjwt.verify.actions import VerificationAction
from fbjwt.verify.kinds import ALL_KINDS, TokenKind
from fbjwt.verify.token import Token

MAX_SUBJECT_LENGTH = 128

RevocationCheck = Callable[[Token], bool]


class Handler(Protocol):
    """One link of the verification chain."""

    def handle(self, action: VerificationAction) -> Token: ...


class ParseToken:
    """Innermost stage: decode the compact JWS into a Token."""

    def handle(self, action: VerificationAction) -> Token:
        try:
            parsed = parse(action.token)
        except (jwt.PyJWTError, ValueError) as err:
            raise MalformedToken(
                f"The token could not be parsed: {err}", action.token
            ) from err
        return Token.with_values(
            action.token, parsed.header, parsed.claims, parsed.signature
        )


class VerifySignature:
    """Check the RS256 signature against the current public keys.

    With ``insecure`` set (Auth emulator tokens are unsigned) the check is
    skipped entirely.
    """

    def __init__(
        self, inner: Handler, keys: KeyFetcher, *, insecure: bool = False
    ) -> None:
        self._inner = inner
        self._keys = keys
        self._insecure = insecure

    def handle(self, action: VerificationAction) -> Token:
        token = self._inner.handle(action)
        if self._insecure:
            return token

        algorithm = token.headers.get("alg")
        if algorithm != SUPPORTED_ALGORITHM:
            raise InvalidSignature(
                f"The token has an invalid signature algorithm '{algorithm}'",
                action.token,
            )

        key_id = token.headers.get("kid")
        if not isinstance(key_id, str) or not key_id:
            raise UnknownKeyId("The token has no key id", action.token)

        material = self._keys.fetch().get(key_id)
        if material is None:
            raise UnknownKeyId(
                f"No public key matches the key id '{key_id}'", action.token
            )

        try:
            public_key = load_public_key(material)
        except ValueError as err:
            raise SignatureVerificationFailed(
                f"The public key '{key_id}' could not be loaded", action.token
            ) from err

        if not verify_signature(public_key, token.signing_input, token.signature):
            raise SignatureVerificationFailed(
                "The token's signature does not match its public key", action.token
            )
        return token


def _time_claim(token: Token, name: str, raw: str) -> float | None:
    value = token.claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MalformedToken(f"The '{name}' claim must be a number", raw)
    try:
        timestamp = float(value)
    except OverflowError as err:
        raise MalformedToken(f"The '{name}' claim is out of range", raw) from err
    if not math.isfinite(timestamp):
        raise MalformedToken(f"The '{name}' claim must be a finite number", raw)
    try:
        datetime.fromtimestamp(timestamp, UTC)
    except (OverflowError, OSError, ValueError) as err:
        raise MalformedToken(f"The '{name}' claim is out of range", raw) from err
    return timestamp


def _required_time_claim(token: Token, name: str, raw: str) -> float:
    value = _time_claim(token, name, raw)
    if value is None:
        raise MalformedToken(f"The token has no '{name}' claim", raw)
    return value


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, UTC).isoformat()


class VerifyClaims:
    """Check time claims, issuer, audience, subject and tenant."""

    def __init__(
        self,
        inner: Handler,
        *,
        kind: TokenKind,
        project_id: str,
        clock: Clock | None = None,
    ) -> None:
        self._inner = inner
        self._kind = kind
        self._project_id = project_id
        self._clock = clock or SystemClock()

    def handle(self, action: VerificationAction) -> Token:
        token = self._inner.handle(action)
        raw = action.token
        now = self._clock.now().timestamp()
        leeway = action.leeway_in_seconds

        expires = _required_time_claim(token, "exp", raw)
        if now > expires + leeway:
            raise ExpiredToken(
                f"The {self._kind.label} expired at {_format_time(expires)}", raw
            )

        issued_at = _required_time_claim(token, "iat", raw)
        if issued_at > now + leeway:
            raise IssuedInTheFuture(
                f"The {self._kind.label} was issued in the future", raw
            )

        auth_time = _time_claim(token, "auth_time", raw)
        if auth_time is not None and auth_time > now + leeway:
            raise IssuedInTheFuture(
                f"The {self._kind.label} has an authentication time in the future", raw
            )

        not_before = _time_claim(token, "nbf", raw)
        if not_before is not None and not_before > now + leeway:
            raise IssuedInTheFuture(
                f"The {self._kind.label} is not valid before "
                f"{_format_time(not_before)}",
                raw,
            )

        self._check_issuer(token, raw)
        self._check_audience(token, raw)
        self._check_subject(token, raw)
        self._check_tenant(token, action)
        return token

    def _check_issuer(self, token: Token, raw: str) -> None:
        issuer = token.claims.get("iss")
        if issuer == self._kind.issuer_for(self._project_id):
            return
        for other in ALL_KINDS:
            if other != self._kind and issuer == other.issuer_for(self._project_id):
                raise WrongTokenKind(
                    f"Expected a {self._kind.label}, got a {other.label}", raw
                )
        raise InvalidIssuer(f"The token was issued by '{issuer}'", raw)

    def _check_audience(self, token: Token, raw: str) -> None:
        audience = token.claims.get("aud")
        if audience == self._project_id:
            return
        if isinstance(audience, list) and self._project_id in audience:
            return
        raise InvalidAudience(
            f"The token is not meant for project '{self._project_id}'", raw
        )

    def _check_subject(self, token: Token, raw: str) -> None:
        subject = token.claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidSubject("The token has an empty subject", raw)
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise InvalidSubject(
                f"The token subject is longer than {MAX_SUBJECT_LENGTH} characters",
                raw,
            )

    def _check_tenant(self, token: Token, action: VerificationAction) -> None:
        expected = action.expected_tenant_id
        if expected is None:
            return
        firebase = token.claims.get("firebase")
        tenant = firebase.get("tenant") if isinstance(firebase, dict) else None
        if tenant != expected:
            raise InvalidTenant(
                f"The token belongs to tenant '{tenant}', not '{expected}'",
                action.token,
            )


class CheckRevocation:
    """Reject tokens that the revocation predicate flags."""

    def __init__(self, inner: Handler, is_revoked: RevocationCheck) -> None:
        self._inner = inner
        self._is_revoked = is_revoked

    def handle(self, action: VerificationAction) -> Token:
        token = self._inner.handle(action)
        if self._is_revoked(token):
            raise RevokedToken("The token has been revoked", action.token)
        return token


def build_handler_chain(
    *,
    kind: TokenKind,
    project_id: str,
    keys: KeyFetcher,
    clock: Clock | None = None,
    is_revoked: RevocationCheck | None = None,
    insecure: bool = False,
) -> Handler:
    """Assemble the default chain for one token kind."""
    handler: Handler = ParseToken()
    handler = VerifySignature(handler, keys, insecure=insecure)
    handler = VerifyClaims(handler, kind=kind, project_id=project_id, clock=clock)
    if is_revoked is not None:
        handler = CheckRevocation(handler, is_revoked)
    return handler
