"""Database layer - engine, base classes, models and repository adapters."""

from workflow_kernel.db.base import UUID, Base, UTCDateTime, UUIDString
from workflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from workflow_kernel.db.models import EntityModel, StateModel
from workflow_kernel.db.repositories import (
    SqlAlchemyEntityRepository,
    SqlAlchemyStateRepository,
)
from workflow_kernel.db.transaction import SessionTransactionHandler

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "StateModel",
    "EntityModel",
    "SqlAlchemyStateRepository",
    "SqlAlchemyEntityRepository",
    "SessionTransactionHandler",
]
