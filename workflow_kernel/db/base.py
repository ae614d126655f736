"""
Module: workflow_kernel.db.base
Responsibility: Declarative base for the workflow ORM models.  Provides the
    UUID primary key convention and the type annotation map shared by every
    table.
Architecture position: Kernel > DB.  Lowest-level import target of the
    persistence adapters.  MUST NOT import from domain/ or workflow_services.

Invariants enforced:
    - UUID primary keys stored as String(36) for portability across
      PostgreSQL and SQLite.
    - datetime columns are timezone-aware; values read back without tzinfo
      (SQLite) are interpreted as UTC.
"""

from datetime import UTC, datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime; naive values coming back are taken as UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    """Declarative base for all workflow tables."""

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


# Re-export UUID for convenience
UUID = PyUUID
