"""Public entry points for verifying ID tokens and session cookies."""

import httpx

from fbjwt.cache.store import CacheStore, InMemoryCacheStore
from fbjwt.core.clock import Clock, SystemClock
from fbjwt.core.errors import InvalidArgument
from fbjwt.core.settings import VerifierSettings
from fbjwt.keys.cached import CachedKeyFetcher
from fbjwt.keys.http_fetcher import HttpKeyFetcher
from fbjwt.verify.actions import VerifyIdToken, VerifySessionCookie
from fbjwt.verify.handlers import Handler, RevocationCheck, build_handler_chain
from fbjwt.verify.kinds import ID_TOKEN, SESSION_COOKIE, TokenKind
from fbjwt.verify.token import Token


def build_key_fetcher(
    kind: TokenKind,
    settings: VerifierSettings,
    *,
    cache: CacheStore | None = None,
    http_client: httpx.Client | None = None,
    clock: Clock | None = None,
) -> CachedKeyFetcher:
    """Cached HTTP key fetcher for the given token kind."""
    clock = clock or SystemClock()
    if kind == SESSION_COOKIE:
        url = settings.session_cookie_keys_url
    else:
        url = settings.id_token_keys_url
    inner = HttpKeyFetcher(
        [url],
        client=http_client,
        clock=clock,
        fallback_ttl=settings.public_keys_fallback_ttl,
        timeout=settings.http_timeout,
    )
    return CachedKeyFetcher(
        inner,
        cache or InMemoryCacheStore(clock),
        clock,
        cache_key=f"{settings.cache_key_prefix}-{kind.name}",
    )


def _default_handler(
    kind: TokenKind,
    settings: VerifierSettings,
    *,
    cache: CacheStore | None,
    http_client: httpx.Client | None,
    clock: Clock | None,
    is_revoked: RevocationCheck | None,
) -> tuple[Handler, CachedKeyFetcher]:
    if not settings.project_id:
        raise InvalidArgument("A project id is required")
    keys = build_key_fetcher(
        kind, settings, cache=cache, http_client=http_client, clock=clock
    )
    handler = build_handler_chain(
        kind=kind,
        project_id=settings.project_id,
        keys=keys,
        clock=clock,
        is_revoked=is_revoked,
        insecure=settings.uses_emulator,
    )
    return handler, keys


class IdTokenVerifier:
    """Verifies ID tokens through a handler chain."""

    def __init__(
        self,
        handler: Handler,
        expected_tenant_id: str | None = None,
        *,
        key_fetcher: CachedKeyFetcher | None = None,
    ) -> None:
        self._handler = handler
        self._expected_tenant_id = expected_tenant_id
        self._key_fetcher = key_fetcher

    @classmethod
    def create_with_project_id(
        cls,
        project_id: str,
        *,
        cache: CacheStore | None = None,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
        is_revoked: RevocationCheck | None = None,
    ) -> "IdTokenVerifier":
        return cls.create_with_settings(
            VerifierSettings(project_id=project_id),
            cache=cache,
            http_client=http_client,
            clock=clock,
            is_revoked=is_revoked,
        )

    @classmethod
    def create_with_settings(
        cls,
        settings: VerifierSettings,
        *,
        cache: CacheStore | None = None,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
        is_revoked: RevocationCheck | None = None,
    ) -> "IdTokenVerifier":
        handler, keys = _default_handler(
            ID_TOKEN,
            settings,
            cache=cache,
            http_client=http_client,
            clock=clock,
            is_revoked=is_revoked,
        )
        return cls(handler, key_fetcher=keys)

    def with_expected_tenant_id(self, tenant_id: str) -> "IdTokenVerifier":
        return IdTokenVerifier(
            self._handler, tenant_id, key_fetcher=self._key_fetcher
        )

    def close(self) -> None:
        """Release the HTTP client of a verifier built by a factory method."""
        if self._key_fetcher is not None:
            self._key_fetcher.close()

    def verify_id_token(self, token: str) -> Token:
        return self._handler.handle(self._action(token))

    def verify_id_token_with_leeway(self, token: str, leeway_in_seconds: int) -> Token:
        action = self._action(token).with_leeway_in_seconds(leeway_in_seconds)
        return self._handler.handle(action)

    def _action(self, token: str) -> VerifyIdToken:
        action = VerifyIdToken.with_token(token)
        if self._expected_tenant_id is not None:
            action = action.with_expected_tenant_id(self._expected_tenant_id)
        return action


class SessionCookieVerifier:
    """Verifies session cookies through a handler chain."""

    def __init__(
        self,
        handler: Handler,
        expected_tenant_id: str | None = None,
        *,
        key_fetcher: CachedKeyFetcher | None = None,
    ) -> None:
        self._handler = handler
        self._expected_tenant_id = expected_tenant_id
        self._key_fetcher = key_fetcher

    @classmethod
    def create_with_project_id(
        cls,
        project_id: str,
        *,
        cache: CacheStore | None = None,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
        is_revoked: RevocationCheck | None = None,
    ) -> "SessionCookieVerifier":
        return cls.create_with_settings(
            VerifierSettings(project_id=project_id),
            cache=cache,
            http_client=http_client,
            clock=clock,
            is_revoked=is_revoked,
        )

    @classmethod
    def create_with_settings(
        cls,
        settings: VerifierSettings,
        *,
        cache: CacheStore | None = None,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
        is_revoked: RevocationCheck | None = None,
    ) -> "SessionCookieVerifier":
        handler, keys = _default_handler(
            SESSION_COOKIE,
            settings,
            cache=cache,
            http_client=http_client,
            clock=clock,
            is_revoked=is_revoked,
        )
        return cls(handler, key_fetcher=keys)

    def with_expected_tenant_id(self, tenant_id: str) -> "SessionCookieVerifier":
        return SessionCookieVerifier(
            self._handler, tenant_id, key_fetcher=self._key_fetcher
        )

    def close(self) -> None:
        """Release the HTTP client of a verifier built by a factory method."""
        if self._key_fetcher is not None:
            self._key_fetcher.close()

    def verify_session_cookie(self, session_cookie: str) -> Token:
        return self._handler.handle(self._action(session_cookie))

    def verify_session_cookie_with_leeway(
        self, session_cookie: str, leeway_in_seconds: int
    ) -> Token:
        action = self._action(session_cookie).with_leeway_in_seconds(leeway_in_seconds)
        return self._handler.handle(action)

    def _action(self, session_cookie: str) -> VerifySessionCookie:
        action = VerifySessionCookie.with_session_cookie(session_cookie)
        if self._expected_tenant_id is not None:
            action = action.with_expected_tenant_id(self._expected_tenant_id)
        return action
