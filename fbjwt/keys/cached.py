"""Key fetcher decorator that keeps key sets in a cache store."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from fbjwt.cache.store import CacheItem, CacheStore
from fbjwt.core.clock import Clock, SystemClock
from fbjwt.core.errors import FetchingPublicKeysFailed
from fbjwt.core.settings import CACHE_KEY_PREFIX_DEFAULT
from fbjwt.keys.types import ExpiringKeys, KeyFetcher, StaticKeys, key_set_adapter

logger = logging.getLogger(__name__)


class CacheMiss(BaseModel):
    """No entry under the cache key."""


class CorruptedEntry(BaseModel):
    """An entry exists but does not decode to a key set."""

    raw: Any


class CachedKeys(BaseModel):
    """An entry that decoded to a key set."""

    model_config = ConfigDict(frozen=True)

    keys: StaticKeys | ExpiringKeys


CacheLookup = CacheMiss | CorruptedEntry | CachedKeys


def classify_cache_item(item: CacheItem) -> CacheLookup:
    """Sort a cache item into one of the three lookup outcomes."""
    if not item.is_hit():
        return CacheMiss()

    raw = item.get()
    if isinstance(raw, StaticKeys | ExpiringKeys):
        return CachedKeys(keys=raw)

    try:
        if isinstance(raw, str | bytes):
            keys = key_set_adapter.validate_json(raw)
        elif isinstance(raw, dict):
            keys = key_set_adapter.validate_python(raw)
        else:
            return CorruptedEntry(raw=raw)
    except ValidationError:
        return CorruptedEntry(raw=raw)
    return CachedKeys(keys=keys)


class CachedKeyFetcher:
    """Serves key sets from a cache store, refreshing through ``inner``.

    The store is written only on a miss, a corrupted entry, or an expired
    key set. Any failure of the inner fetcher or the store surfaces as a
    new FetchingPublicKeysFailed chained to the original error.
    """

    def __init__(
        self,
        inner: KeyFetcher,
        cache: CacheStore,
        clock: Clock | None = None,
        cache_key: str = CACHE_KEY_PREFIX_DEFAULT,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._clock = clock or SystemClock()
        self._cache_key = cache_key

    @property
    def cache_key(self) -> str:
        return self._cache_key

    def close(self) -> None:
        """Close the inner fetcher when it holds resources of its own."""
        close = getattr(self._inner, "close", None)
        if close is not None:
            close()

    def fetch(self) -> StaticKeys | ExpiringKeys:
        try:
            item = self._cache.get_item(self._cache_key)
        except Exception as err:
            raise FetchingPublicKeysFailed.because(
                f"cache entry {self._cache_key!r} could not be read: {err}"
            ) from err
        lookup = classify_cache_item(item)

        if isinstance(lookup, CachedKeys):
            if not lookup.keys.is_expired(self._clock.now()):
                return lookup.keys
            logger.debug("Cached public keys under %r expired", self._cache_key)
        elif isinstance(lookup, CorruptedEntry):
            logger.warning(
                "Ignoring unreadable cache entry %r of type %s",
                self._cache_key,
                type(lookup.raw).__name__,
            )

        keys = self._fetch_fresh()
        item.set(keys)
        item.expires_after(None)
        try:
            self._cache.save(item)
        except Exception as err:
            raise FetchingPublicKeysFailed.because(
                f"cache entry {self._cache_key!r} could not be written: {err}"
            ) from err
        return keys

    def _fetch_fresh(self) -> StaticKeys | ExpiringKeys:
        try:
            return self._inner.fetch()
        except Exception as err:
            raise FetchingPublicKeysFailed(
                f"Unable to refresh public keys: {err}"
            ) from err
