"""
State -- immutable record of one completed transition attempt.

Invariants enforced
-------------------
* Frozen: a ``State`` is never edited.  ``transit()`` returns a new value.
* ``step_name`` is always the target step of the attempted transition,
  whether or not it succeeded.  ``start_step_name`` is the step the item
  was in before the attempt (``None`` for a start).
* ``data`` and ``errors`` are plain snapshots, detached from the live
  ``Context`` and ``ErrorCollection`` they were taken from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from workflow_kernel.domain.entity import EntityId

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.errors import ErrorCollection
    from workflow_kernel.domain.transition import Transition


@dataclass(frozen=True)
class State:
    entity_id: EntityId
    workflow_name: str
    transition_name: str
    step_name: str | None
    success: bool
    reached_at: datetime
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[Any] = field(default_factory=list)
    start_step_name: str | None = None
    state_id: UUID = field(default_factory=uuid4)

    @classmethod
    def start(
        cls,
        entity_id: EntityId,
        transition: Transition,
        context: Context,
        errors: ErrorCollection,
        success: bool,
        reached_at: datetime,
    ) -> State:
        """State produced by the first transition of a workflow run."""
        return cls(
            entity_id=entity_id,
            workflow_name=transition.workflow_name,
            transition_name=transition.name,
            step_name=transition.step_to.name if transition.step_to else None,
            success=success,
            reached_at=reached_at,
            data=context.properties,
            errors=errors.to_array(),
            start_step_name=None,
        )

    @classmethod
    def transit(
        cls,
        entity_id: EntityId,
        start_step_name: str | None,
        transition: Transition,
        context: Context,
        errors: ErrorCollection,
        success: bool,
        reached_at: datetime,
    ) -> State:
        """State produced by a transition of an item sitting at ``start_step_name``."""
        return cls(
            entity_id=entity_id,
            workflow_name=transition.workflow_name,
            transition_name=transition.name,
            step_name=transition.step_to.name if transition.step_to else None,
            success=success,
            reached_at=reached_at,
            data=context.properties,
            errors=errors.to_array(),
            start_step_name=start_step_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "state_id": str(self.state_id),
            "entity_id": str(self.entity_id),
            "workflow_name": self.workflow_name,
            "transition_name": self.transition_name,
            "start_step_name": self.start_step_name,
            "step_name": self.step_name,
            "success": self.success,
            "reached_at": self.reached_at.isoformat(),
            "data": dict(self.data),
            "errors": list(self.errors),
        }
