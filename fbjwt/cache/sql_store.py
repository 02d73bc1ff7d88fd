"""Cache store backed by a SQL table, for caches shared between processes."""

from datetime import timedelta

from pydantic_core import from_json, to_json
from sqlalchemy import Engine, delete
from sqlalchemy.orm import Session, sessionmaker

from fbjwt.cache.models import CacheBase, CacheEntryEntity
from fbjwt.cache.store import CacheItem
from fbjwt.core.clock import Clock, SystemClock


class SqlCacheStore:
    """Stores JSON-serialized values in ``fbjwt_cache_entries``.

    Values that no longer decode as JSON are still reported as hits and
    returned as raw text; deciding whether they are usable is the caller's
    business.
    """

    def __init__(self, engine: Engine, clock: Clock | None = None) -> None:
        self._engine = engine
        self._clock = clock or SystemClock()
        self._sessions: sessionmaker[Session] = sessionmaker(
            engine, expire_on_commit=False
        )

    def create_schema(self) -> None:
        """Create the cache table if it does not exist."""
        CacheBase.metadata.create_all(self._engine)

    def get_item(self, key: str) -> CacheItem:
        with self._sessions() as session:
            entity = session.get(CacheEntryEntity, key)
        if entity is None:
            return CacheItem(key)

        if entity.expires_at is not None:
            now = self._clock.now()
            expiry = entity.expires_at
            if expiry.tzinfo is None:
                now = now.replace(tzinfo=None)
            if now >= expiry:
                return CacheItem(key)

        try:
            value = from_json(entity.value)
        except ValueError:
            value = entity.value
        return CacheItem(key, value, hit=True)

    def save(self, item: CacheItem) -> bool:
        expires_at = None
        if item.ttl_seconds is not None:
            expires_at = self._clock.now() + timedelta(seconds=item.ttl_seconds)
        entity = CacheEntryEntity(
            key=item.key,
            value=to_json(item.pending_value).decode(),
            expires_at=expires_at,
        )
        with self._sessions.begin() as session:
            session.merge(entity)
        return True

    def delete(self, key: str) -> None:
        with self._sessions.begin() as session:
            session.execute(delete(CacheEntryEntity).where(CacheEntryEntity.key == key))
