"""
workflow_services.manager -- Workflow registry and handler factory.

Responsibility:
    Holds the configured workflows together with the collaborators every
    ``TransitionHandler`` needs, picks the workflow that supports an entity,
    and rebuilds items from their recorded state history.

Architecture position:
    Services layer.  The single place where handlers are wired; callers do
    not construct ``TransitionHandler`` themselves in normal use.

Invariants enforced:
    - Workflow names are unique within a manager.
    - A started item is always handled by the workflow it was started in,
      regardless of which workflows currently ``supports()`` it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from workflow_kernel.domain.item import Item
from workflow_kernel.exceptions import WorkflowConfigurationError, WorkflowNotFoundError
from workflow_kernel.logging_config import get_logger
from workflow_services.listener import Listener
from workflow_services.transition_handler import TransitionHandler

if TYPE_CHECKING:
    from workflow_kernel.domain.entity import EntityId
    from workflow_kernel.domain.interfaces import (
        EntityRepository,
        StateRepository,
        TransactionHandler,
    )
    from workflow_kernel.domain.workflow import Workflow

logger = get_logger("services.manager")


class WorkflowManager:
    def __init__(
        self,
        entity_repository: EntityRepository,
        state_repository: StateRepository,
        transaction_handler: TransactionHandler,
        workflows: Iterable[Workflow] = (),
        listener: Listener | None = None,
    ) -> None:
        self._entity_repository = entity_repository
        self._state_repository = state_repository
        self._transaction_handler = transaction_handler
        self._listener = listener or Listener()
        self._workflows: dict[str, Workflow] = {}

        for workflow in workflows:
            self.add_workflow(workflow)

    @property
    def workflows(self) -> tuple[Workflow, ...]:
        return tuple(self._workflows.values())

    def add_workflow(self, workflow: Workflow) -> WorkflowManager:
        if workflow.name in self._workflows:
            raise WorkflowConfigurationError(workflow.name, "workflow already registered")
        self._workflows[workflow.name] = workflow
        return self

    def has_workflow(self, entity_id: EntityId, entity: Any = None) -> bool:
        return self._find_workflow(entity_id, entity) is not None

    def get_workflow(self, entity_id: EntityId, entity: Any = None) -> Workflow:
        """First registered workflow supporting the entity.

        Raises:
            WorkflowNotFoundError: if no workflow supports it.
        """
        workflow = self._find_workflow(entity_id, entity)
        if workflow is None:
            raise WorkflowNotFoundError(f"entity '{entity_id}'")
        return workflow

    def get_workflow_by_name(self, name: str) -> Workflow:
        try:
            return self._workflows[name]
        except KeyError:
            raise WorkflowNotFoundError(f"name '{name}'") from None

    def create_item(self, entity_id: EntityId, entity: Any) -> Item:
        """Item for ``entity``, restored from its recorded states."""
        states = list(self._state_repository.find(entity_id))
        if not states:
            return Item.initialize(entity_id, entity)
        return Item.reconstitute(entity_id, entity, states)

    def handle(self, item: Item, transition_name: str | None = None) -> TransitionHandler | None:
        """Handler for ``transition_name`` on ``item``.

        Returns None when no workflow applies to the item.
        """
        if item.is_workflow_started():
            workflow = self.get_workflow_by_name(item.workflow_name)
        else:
            workflow = self._find_workflow(item.entity_id, item.entity)
            if workflow is None:
                logger.info(
                    "workflow_not_supported",
                    extra={"item": str(item.entity_id), "transition_name": transition_name},
                )
                return None

        return TransitionHandler(
            item,
            workflow,
            transition_name,
            self._entity_repository,
            self._state_repository,
            self._transaction_handler,
            self._listener,
        )

    def _find_workflow(self, entity_id: EntityId, entity: Any) -> Workflow | None:
        for workflow in self._workflows.values():
            if workflow.supports(entity_id, entity):
                return workflow
        return None
