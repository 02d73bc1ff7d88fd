"""Token kinds: what distinguishes an ID token from a session cookie."""

from pydantic import BaseModel, ConfigDict


class TokenKind(BaseModel):
    """Issuer naming for one kind of token."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    issuer_prefix: str

    def issuer_for(self, project_id: str) -> str:
        return f"{self.issuer_prefix}{project_id}"


ID_TOKEN = TokenKind(
    name="id_token",
    label="ID token",
    issuer_prefix="https://securetoken.google.com/",
)
SESSION_COOKIE = TokenKind(
    name="session_cookie",
    label="session cookie",
    issuer_prefix="https://session.firebase.google.com/",
)

ALL_KINDS = (ID_TOKEN, SESSION_COOKIE)
