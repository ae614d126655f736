"""
Workflow conditions -- decide whether a workflow applies to an entity.

Same composition rules as transition conditions: children evaluated in
order, and an empty AND or OR collection matches.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from workflow_kernel.domain.entity import EntityId
    from workflow_kernel.domain.workflow import Workflow


@runtime_checkable
class WorkflowCondition(Protocol):
    def match(self, workflow: Workflow, entity_id: EntityId, entity: Any) -> bool: ...


class WorkflowConditionCollection:
    def __init__(self, conditions: Iterable[WorkflowCondition] = ()) -> None:
        self._conditions: list[WorkflowCondition] = list(conditions)

    def add_condition(self, condition: WorkflowCondition) -> WorkflowConditionCollection:
        self._conditions.append(condition)
        return self

    @property
    def conditions(self) -> tuple[WorkflowCondition, ...]:
        return tuple(self._conditions)


class WorkflowAndCondition(WorkflowConditionCollection):
    def match(self, workflow: Workflow, entity_id: EntityId, entity: Any) -> bool:
        return all(c.match(workflow, entity_id, entity) for c in self._conditions)


class WorkflowOrCondition(WorkflowConditionCollection):
    def match(self, workflow: Workflow, entity_id: EntityId, entity: Any) -> bool:
        if not self._conditions:
            return True
        return any(c.match(workflow, entity_id, entity) for c in self._conditions)


class ProviderNameCondition:
    """Matches entities whose id carries the given provider name."""

    def __init__(self, provider_name: str) -> None:
        self.provider_name = provider_name

    def match(self, workflow: Workflow, entity_id: EntityId, entity: Any) -> bool:
        return entity_id.provider_name == self.provider_name
