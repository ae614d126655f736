"""
Module: workflow_kernel.db.models
Responsibility: ORM persistence for recorded workflow states and for the
    entities carried through workflows.
Architecture position: Kernel > DB.  May import from db/base.py and the
    domain value objects it converts to and from.

Invariants enforced:
    - ``workflow_states`` is append-only; ``sequence`` orders the history of
      one entity.
    - ``workflow_entities`` holds at most one row per (provider, identifier).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workflow_kernel.db.base import Base

if TYPE_CHECKING:
    from workflow_kernel.domain.state import State


class StateModel(Base):
    """One recorded transition attempt."""

    __tablename__ = "workflow_states"

    __table_args__ = (
        Index("idx_workflow_state_entity", "entity_provider", "entity_identifier"),
        UniqueConstraint(
            "entity_provider",
            "entity_identifier",
            "sequence",
            name="uq_workflow_state_sequence",
        ),
    )

    entity_provider: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_identifier: Mapped[str] = mapped_column(String(255), nullable=False)

    # Position in the entity's history, starting at 1
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    workflow_name: Mapped[str] = mapped_column(String(100), nullable=False)
    transition_name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_step_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    step_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    reached_at: Mapped[datetime] = mapped_column(nullable=False)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    errors: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return (
            f"<StateModel {self.entity_provider}::{self.entity_identifier} "
            f"#{self.sequence} {self.transition_name} success={self.success}>"
        )

    def to_dto(self) -> State:
        """Convert ORM model to the frozen domain ``State``."""
        from workflow_kernel.domain.entity import EntityId
        from workflow_kernel.domain.state import State

        return State(
            entity_id=EntityId(self.entity_provider, self.entity_identifier),
            workflow_name=self.workflow_name,
            transition_name=self.transition_name,
            step_name=self.step_name,
            success=self.success,
            reached_at=self.reached_at,
            data=dict(self.data or {}),
            errors=list(self.errors or []),
            start_step_name=self.start_step_name,
            state_id=self.id,
        )

    @classmethod
    def from_dto(cls, dto: State, sequence: int) -> StateModel:
        """Create ORM model from a domain ``State``."""
        from workflow_kernel.db.serialization import to_json_safe

        return cls(
            id=dto.state_id,
            entity_provider=dto.entity_id.provider_name,
            entity_identifier=dto.entity_id.identifier,
            sequence=sequence,
            workflow_name=dto.workflow_name,
            transition_name=dto.transition_name,
            start_step_name=dto.start_step_name,
            step_name=dto.step_name,
            success=dto.success,
            reached_at=dto.reached_at,
            data=to_json_safe(dto.data),
            errors=to_json_safe(dto.errors),
        )


class EntityModel(Base):
    """Snapshot of a plain (non-ORM) entity handled by a workflow."""

    __tablename__ = "workflow_entities"

    __table_args__ = (
        UniqueConstraint(
            "provider_name",
            "identifier",
            name="uq_workflow_entity_identity",
        ),
    )

    provider_name: Mapped[str] = mapped_column(String(100), nullable=False)
    identifier: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<EntityModel {self.provider_name}::{self.identifier}>"
