"""Verified token value."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Token(BaseModel):
    """A decoded JWT; headers and claims are read-only mappings."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    encoded: str
    headers: Mapping[str, Any]
    claims: Mapping[str, Any]
    signature: bytes = b""

    @field_validator("headers", "claims", mode="after")
    @classmethod
    def freeze_mapping(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @classmethod
    def with_values(
        cls,
        encoded: str,
        headers: Mapping[str, Any],
        claims: Mapping[str, Any],
        signature: bytes = b"",
    ) -> "Token":
        return cls(encoded=encoded, headers=headers, claims=claims, signature=signature)

    @property
    def signing_input(self) -> bytes:
        """The ``header.payload`` prefix the signature was computed over."""
        return self.encoded.rpartition(".")[0].encode()

    def claim(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)

    def __str__(self) -> str:
        return self.encoded
