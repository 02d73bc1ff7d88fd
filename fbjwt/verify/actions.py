"""Immutable verification requests."""

from pydantic import BaseModel, ConfigDict, Field

from fbjwt.core.errors import InvalidArgument


def _check_leeway(seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise InvalidArgument("Leeway must be a whole number of seconds")
    if seconds < 0:
        raise InvalidArgument("Leeway must not be negative")
    return seconds


class VerifyIdToken(BaseModel):
    """Request to verify one ID token."""

    model_config = ConfigDict(frozen=True)

    token: str
    leeway_in_seconds: int = Field(default=0, ge=0)
    expected_tenant_id: str | None = None

    @classmethod
    def with_token(cls, token: str) -> "VerifyIdToken":
        return cls(token=token)

    def with_leeway_in_seconds(self, seconds: int) -> "VerifyIdToken":
        return self.model_copy(update={"leeway_in_seconds": _check_leeway(seconds)})

    def with_expected_tenant_id(self, tenant_id: str) -> "VerifyIdToken":
        return self.model_copy(update={"expected_tenant_id": tenant_id})


class VerifySessionCookie(BaseModel):
    """Request to verify one session cookie."""

    model_config = ConfigDict(frozen=True)

    session_cookie: str
    leeway_in_seconds: int = Field(default=0, ge=0)
    expected_tenant_id: str | None = None

    @classmethod
    def with_session_cookie(cls, session_cookie: str) -> "VerifySessionCookie":
        return cls(session_cookie=session_cookie)

    def with_leeway_in_seconds(self, seconds: int) -> "VerifySessionCookie":
        return self.model_copy(update={"leeway_in_seconds": _check_leeway(seconds)})

    def with_expected_tenant_id(self, tenant_id: str) -> "VerifySessionCookie":
        return self.model_copy(update={"expected_tenant_id": tenant_id})

    @property
    def token(self) -> str:
        return self.session_cookie


VerificationAction = VerifyIdToken | VerifySessionCookie
