"""Error taxonomy for key fetching and token verification."""

TOKEN_PREVIEW_LENGTH = 15


class FirebaseJWTError(Exception):
    """Base class for all errors raised by fbjwt."""


class InvalidArgument(FirebaseJWTError, ValueError):
    """A caller-supplied argument is out of range."""


class FetchingPublicKeysFailed(FirebaseJWTError):
    """The public key set could not be obtained."""

    @classmethod
    def because(cls, reason: str) -> "FetchingPublicKeysFailed":
        return cls(f"Unable to fetch public keys: {reason}")


def _preview(token: str) -> str:
    if len(token) > TOKEN_PREVIEW_LENGTH + 3:
        return token[:TOKEN_PREVIEW_LENGTH] + "..."
    return token


class InvalidToken(FirebaseJWTError):
    """The token or session cookie could not be verified."""

    def __init__(self, reason: str, token: str | None = None) -> None:
        self.reason = reason
        self.token = token
        if token is None:
            super().__init__(reason)
        else:
            super().__init__(f"The value '{_preview(token)}' is not valid: {reason}")


class MalformedToken(InvalidToken):
    """The token is not a structurally valid JWT."""


class UnknownKeyId(InvalidToken):
    """The token's key id is missing or not in the current key set."""


class InvalidSignature(InvalidToken):
    """The token's signature cannot be trusted."""


class SignatureVerificationFailed(InvalidSignature):
    """The signature does not match the signing key."""


class ExpiredToken(InvalidToken):
    """The token's exp claim lies in the past."""


class IssuedInTheFuture(InvalidToken):
    """A time claim (iat, auth_time, nbf) lies in the future."""


class InvalidIssuer(InvalidToken):
    """The iss claim does not match the expected issuer."""


class WrongTokenKind(InvalidIssuer):
    """An ID token was given where a session cookie was expected, or vice versa."""


class InvalidAudience(InvalidToken):
    """The aud claim does not name the expected project."""


class InvalidSubject(InvalidToken):
    """The sub claim is empty or too long."""


class InvalidTenant(InvalidToken):
    """The token belongs to a different tenant."""


class RevokedToken(InvalidToken):
    """The token was flagged by the revocation check."""
