"""
Item -- an entity travelling through a workflow.

Responsibility
--------------
Wraps a domain entity with its workflow position (workflow name, current
step) and its append-only state history.  Every transition attempt,
successful or not, is recorded as a new ``State``.

Architecture position
---------------------
**Kernel domain layer** -- pure, ZERO I/O.  The item is persisted by the
caller's ``StateRepository`` / ``EntityRepository``.

Invariants enforced
-------------------
* ``state_history`` only grows; states are immutable.
* Every start attempt marks the item as workflow-started and places it on
  the start step, even when the start transition failed.
* After the start, ``current_step_name`` changes only on a successful
  transition.  A failed transition leaves the item where it was.

Failure modes
-------------
* ``WorkflowNotStartedError`` -- ``transit()`` before any start.
* ``WorkflowConfigurationError`` -- ``transit()`` with a transition that
  belongs to another workflow than the one the item was started in.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from workflow_kernel.domain.entity import EntityId
from workflow_kernel.domain.state import State
from workflow_kernel.exceptions import WorkflowConfigurationError, WorkflowNotStartedError

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.errors import ErrorCollection
    from workflow_kernel.domain.transition import Transition


class Item:
    def __init__(self, entity_id: EntityId, entity: Any) -> None:
        self._entity_id = entity_id
        self._entity = entity
        self._workflow_name: str | None = None
        self._current_step_name: str | None = None
        self._state_history: list[State] = []

    @classmethod
    def initialize(cls, entity_id: EntityId, entity: Any) -> Item:
        """Fresh item with no workflow history."""
        return cls(entity_id, entity)

    @classmethod
    def reconstitute(
        cls,
        entity_id: EntityId,
        entity: Any,
        state_history: Iterable[State],
    ) -> Item:
        """Rebuild an item from previously recorded states (oldest first)."""
        item = cls(entity_id, entity)
        item._state_history = list(state_history)

        if item._state_history:
            first = item._state_history[0]
            item._workflow_name = first.workflow_name
            item._current_step_name = first.step_name

        for state in item._state_history[1:]:
            if state.success:
                item._current_step_name = state.step_name

        return item

    @property
    def entity_id(self) -> EntityId:
        return self._entity_id

    @property
    def entity(self) -> Any:
        return self._entity

    @property
    def workflow_name(self) -> str | None:
        return self._workflow_name

    @property
    def current_step_name(self) -> str | None:
        return self._current_step_name

    def is_workflow_started(self) -> bool:
        return self._workflow_name is not None

    @property
    def state_history(self) -> tuple[State, ...]:
        return tuple(self._state_history)

    @property
    def latest_state(self) -> State | None:
        return self._state_history[-1] if self._state_history else None

    def start(
        self,
        transition: Transition,
        context: Context,
        errors: ErrorCollection,
        success: bool,
        reached_at: datetime,
    ) -> State:
        """Record the outcome of a start transition."""
        state = State.start(self._entity_id, transition, context, errors, success, reached_at)

        self._workflow_name = state.workflow_name
        self._current_step_name = state.step_name

        self._state_history.append(state)
        return state

    def transit(
        self,
        transition: Transition,
        context: Context,
        errors: ErrorCollection,
        success: bool,
        reached_at: datetime,
    ) -> State:
        """Record the outcome of a transition on a started item."""
        if not self.is_workflow_started():
            raise WorkflowNotStartedError(str(self._entity_id))

        if transition.workflow_name != self._workflow_name:
            raise WorkflowConfigurationError(
                self._workflow_name or "",
                f"transition '{transition.name}' belongs to workflow "
                f"'{transition.workflow_name}'",
            )

        state = State.transit(
            self._entity_id,
            self._current_step_name,
            transition,
            context,
            errors,
            success,
            reached_at,
        )

        if success:
            self._current_step_name = state.step_name

        self._state_history.append(state)
        return state

    def __repr__(self) -> str:
        return (
            f"<Item {self._entity_id} workflow={self._workflow_name} "
            f"step={self._current_step_name}>"
        )
