"""Public key sets and the fetcher protocol."""

from datetime import datetime
from typing import Annotated, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from fbjwt.core.errors import InvalidArgument


def _require_values(values: dict[str, str]) -> dict[str, str]:
    if not values:
        raise ValueError("A key set must contain at least one key")
    return values


class StaticKeys(BaseModel):
    """A key set that never expires."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["static"] = "static"
    values: dict[str, str]

    check_values = field_validator("values")(_require_values)

    @classmethod
    def with_values(cls, values: dict[str, str]) -> "StaticKeys":
        if not values:
            raise InvalidArgument("A key set must contain at least one key")
        return cls(values=dict(values))

    def is_expired(self, now: datetime) -> bool:
        return False

    def get(self, key_id: str) -> str | None:
        return self.values.get(key_id)

    def key_ids(self) -> list[str]:
        return list(self.values)


class ExpiringKeys(BaseModel):
    """A key set that is fresh until ``expires_at``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["expiring"] = "expiring"
    values: dict[str, str]
    expires_at: datetime

    check_values = field_validator("values")(_require_values)

    @field_validator("expires_at")
    @classmethod
    def check_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("expires_at must be timezone-aware")
        return value

    @classmethod
    def with_values_and_expiration_time(
        cls, values: dict[str, str], expires_at: datetime
    ) -> "ExpiringKeys":
        if not values:
            raise InvalidArgument("A key set must contain at least one key")
        if expires_at.tzinfo is None:
            raise InvalidArgument("The expiration time must be timezone-aware")
        return cls(values=dict(values), expires_at=expires_at)

    def with_expiration_time(self, expires_at: datetime) -> "ExpiringKeys":
        """Return a copy of this key set expiring at a different time."""
        if expires_at.tzinfo is None:
            raise InvalidArgument("The expiration time must be timezone-aware")
        return self.model_copy(update={"expires_at": expires_at})

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def get(self, key_id: str) -> str | None:
        return self.values.get(key_id)

    def key_ids(self) -> list[str]:
        return list(self.values)


KeySet = Annotated[StaticKeys | ExpiringKeys, Field(discriminator="kind")]

key_set_adapter: TypeAdapter[StaticKeys | ExpiringKeys] = TypeAdapter(KeySet)


class KeyFetcher(Protocol):
    """Anything that can produce the current public key set."""

    def fetch(self) -> StaticKeys | ExpiringKeys: ...
