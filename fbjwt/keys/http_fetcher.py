"""Fetch public keys from the identity platform's key endpoints."""

import json
import logging
import re
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from fbjwt.core.clock import Clock, SystemClock
from fbjwt.core.errors import FetchingPublicKeysFailed
from fbjwt.core.settings import HTTP_TIMEOUT_DEFAULT, PUBLIC_KEYS_FALLBACK_TTL_DEFAULT
from fbjwt.keys.types import ExpiringKeys, StaticKeys

logger = logging.getLogger(__name__)

MAX_AGE_PATTERN = re.compile(r"(?:^|[,\s])max-age\s*=\s*\"?(\d+)\"?", re.IGNORECASE)


def _cache_directives(response: httpx.Response) -> set[str]:
    header = response.headers.get("Cache-Control", "")
    return {part.strip().lower() for part in header.split(",") if part.strip()}


def _parse_expires(value: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _keys_from_body(url: str, body: Any) -> dict[str, str]:
    """Accept either ``{kid: pem}`` or a JWKS ``{"keys": [...]}`` document."""
    if not isinstance(body, dict):
        raise FetchingPublicKeysFailed.because(f"{url} did not return a JSON object")

    if isinstance(body.get("keys"), list):
        values: dict[str, str] = {}
        for jwk in body["keys"]:
            if not isinstance(jwk, dict) or not isinstance(jwk.get("kid"), str):
                raise FetchingPublicKeysFailed.because(
                    f"{url} returned a JWK without a key id"
                )
            values[jwk["kid"]] = json.dumps(jwk, sort_keys=True)
        return values

    if not all(isinstance(v, str) for v in body.values()):
        raise FetchingPublicKeysFailed.because(
            f"{url} returned key material that is not a string"
        )
    return dict(body)


class HttpKeyFetcher:
    """Downloads and merges key sets from one or more URLs.

    Freshness comes from ``Cache-Control: max-age``, then ``Expires``, then
    the fallback TTL. With several URLs the earliest horizon wins.
    """

    def __init__(
        self,
        urls: Sequence[str],
        *,
        client: httpx.Client | None = None,
        clock: Clock | None = None,
        fallback_ttl: int = PUBLIC_KEYS_FALLBACK_TTL_DEFAULT,
        timeout: float = HTTP_TIMEOUT_DEFAULT,
    ) -> None:
        if not urls:
            raise ValueError("At least one key URL is required")
        self._urls = list(urls)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._clock = clock or SystemClock()
        self._fallback_ttl = fallback_ttl

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self) -> StaticKeys | ExpiringKeys:
        now = self._clock.now()
        values: dict[str, str] = {}
        horizons: list[datetime] = []
        immutable = True

        for url in self._urls:
            response = self._get(url)
            try:
                body = response.json()
            except ValueError as err:
                raise FetchingPublicKeysFailed.because(
                    f"{url} returned invalid JSON"
                ) from err
            values.update(_keys_from_body(url, body))

            directives = _cache_directives(response)
            immutable = immutable and "immutable" in directives
            horizons.append(self._expires_at(response, now))

        if not values:
            raise FetchingPublicKeysFailed.because("the key endpoints returned no keys")

        if immutable:
            logger.debug("Fetched %d immutable public keys", len(values))
            return StaticKeys.with_values(values)

        expires_at = min(horizons)
        logger.debug("Fetched %d public keys valid until %s", len(values), expires_at)
        return ExpiringKeys.with_values_and_expiration_time(values, expires_at)

    def _get(self, url: str) -> httpx.Response:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as err:
            raise FetchingPublicKeysFailed.because(f"{url}: {err}") from err
        return response

    def _expires_at(self, response: httpx.Response, now: datetime) -> datetime:
        match = MAX_AGE_PATTERN.search(response.headers.get("Cache-Control", ""))
        if match:
            try:
                return now + timedelta(seconds=int(match.group(1)))
            except OverflowError:
                logger.debug("Ignoring out-of-range max-age %s", match.group(1))

        expires = response.headers.get("Expires")
        if expires:
            parsed = _parse_expires(expires)
            if parsed is not None:
                return parsed

        return now + timedelta(seconds=self._fallback_ttl)
