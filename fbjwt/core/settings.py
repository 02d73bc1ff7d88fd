"""Verifier settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

ID_TOKEN_KEYS_URL_DEFAULT = (
    "https://www.googleapis.com/robot/v1/metadata/x509/"
    "securetoken@system.gserviceaccount.com"
)
SESSION_COOKIE_KEYS_URL_DEFAULT = (
    "https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys"
)
PUBLIC_KEYS_FALLBACK_TTL_DEFAULT = 3600
HTTP_TIMEOUT_DEFAULT = 10.0
CACHE_KEY_PREFIX_DEFAULT = "fbjwt-public-keys"


class VerifierSettings(BaseSettings):
    """Project and key-endpoint settings for token verification."""

    model_config = SettingsConfigDict(env_prefix="FIREBASE_")

    project_id: str = ""
    auth_emulator_host: str = ""
    id_token_keys_url: str = ID_TOKEN_KEYS_URL_DEFAULT
    session_cookie_keys_url: str = SESSION_COOKIE_KEYS_URL_DEFAULT
    public_keys_fallback_ttl: int = PUBLIC_KEYS_FALLBACK_TTL_DEFAULT
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    cache_key_prefix: str = CACHE_KEY_PREFIX_DEFAULT

    @property
    def uses_emulator(self) -> bool:
        """True when tokens come from the Auth emulator and are unsigned."""
        return bool(self.auth_emulator_host.strip())
