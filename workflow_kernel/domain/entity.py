"""
Entity identity (``workflow_kernel.domain.entity``).

An ``EntityId`` identifies one domain entity across workflow runs.  The
provider name is the type tag (usually a table or aggregate name) and
also decides which workflows can handle the entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from workflow_kernel.exceptions import InvalidEntityIdError

SEPARATOR = "::"


@dataclass(frozen=True)
class EntityId:
    """Stable identity of an entity: ``provider_name::identifier``."""

    provider_name: str
    identifier: str

    def __post_init__(self) -> None:
        if not str(self.provider_name).strip() or not str(self.identifier).strip():
            raise InvalidEntityIdError(f"{self.provider_name}{SEPARATOR}{self.identifier}")
        # Normalise numeric identifiers so 5 and "5" are the same entity.
        object.__setattr__(self, "identifier", str(self.identifier))

    @classmethod
    def from_provider_name_and_id(cls, provider_name: str, identifier: Any) -> EntityId:
        return cls(provider_name, str(identifier))

    @classmethod
    def from_string(cls, value: str) -> EntityId:
        """Parse ``provider_name::identifier`` (split on the first separator)."""
        provider_name, sep, identifier = value.partition(SEPARATOR)
        if not sep:
            raise InvalidEntityIdError(value)
        return cls(provider_name, identifier)

    def equals(self, other: EntityId) -> bool:
        return str(self) == str(other)

    def __str__(self) -> str:
        return f"{self.provider_name}{SEPARATOR}{self.identifier}"
