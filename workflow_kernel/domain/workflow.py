"""
Workflow -- the step/transition graph for one kind of entity.

Responsibility
--------------
Holds the steps, transitions, roles and the start transition of a single
workflow and answers graph queries by name.  ``supports()`` decides
whether the workflow applies to a given entity.

Architecture position
---------------------
**Kernel domain layer** -- pure, ZERO I/O.  Built once at configuration
time (by hand or via ``workflow_config.builder``) and only queried while
transitions are handled.

Invariants enforced
-------------------
* Step, transition and role names are unique within a workflow.
* Every transition added is bound to this workflow by name.
* ``check_integrity()`` verifies that every allowed transition, every
  target step and the start transition resolve.
"""

from __future__ import annotations

from typing import Any

from workflow_kernel.domain.role import Role
from workflow_kernel.domain.step import Step
from workflow_kernel.domain.transition import Transition
from workflow_kernel.domain.workflow_conditions import (
    WorkflowAndCondition,
    WorkflowCondition,
)
from workflow_kernel.exceptions import (
    RoleNotFoundError,
    StepNotFoundError,
    TransitionNotFoundError,
    WorkflowConfigurationError,
)


class Workflow:
    def __init__(
        self,
        name: str,
        provider_name: str,
        label: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.provider_name = provider_name
        self.label = label or name
        self.config = dict(config or {})
        self._steps: dict[str, Step] = {}
        self._transitions: dict[str, Transition] = {}
        self._roles: dict[str, Role] = {}
        self._start_transition_name: str | None = None
        self._condition: WorkflowAndCondition | None = None

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def add_step(self, step: Step) -> Workflow:
        if step.name in self._steps:
            raise WorkflowConfigurationError(self.name, f"duplicate step '{step.name}'")
        self._steps[step.name] = step
        return self

    def add_transition(self, transition: Transition, is_start: bool = False) -> Workflow:
        if transition.name in self._transitions:
            raise WorkflowConfigurationError(
                self.name, f"duplicate transition '{transition.name}'"
            )
        transition.bind_workflow(self.name)
        self._transitions[transition.name] = transition
        if is_start:
            self._start_transition_name = transition.name
        return self

    def set_start_transition(self, transition_name: str) -> Workflow:
        if transition_name not in self._transitions:
            raise TransitionNotFoundError(self.name, transition_name)
        self._start_transition_name = transition_name
        return self

    def add_role(self, role: Role) -> Workflow:
        if role.name in self._roles:
            raise WorkflowConfigurationError(self.name, f"duplicate role '{role.name}'")
        self._roles[role.name] = role
        return self

    def add_condition(self, condition: WorkflowCondition) -> Workflow:
        if self._condition is None:
            self._condition = WorkflowAndCondition()
        self._condition.add_condition(condition)
        return self

    @property
    def condition(self) -> WorkflowAndCondition | None:
        return self._condition

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps.values())

    @property
    def transitions(self) -> tuple[Transition, ...]:
        return tuple(self._transitions.values())

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(self._roles.values())

    def has_step(self, step_name: str | None) -> bool:
        return step_name in self._steps

    def get_step(self, step_name: str | None) -> Step:
        try:
            return self._steps[step_name]  # type: ignore[index]
        except KeyError:
            raise StepNotFoundError(self.name, step_name) from None

    def has_transition(self, transition_name: str | None) -> bool:
        return transition_name in self._transitions

    def get_transition(self, transition_name: str | None) -> Transition:
        try:
            return self._transitions[transition_name]  # type: ignore[index]
        except KeyError:
            raise TransitionNotFoundError(self.name, transition_name) from None

    def get_start_transition(self) -> Transition:
        if self._start_transition_name is None:
            raise WorkflowConfigurationError(self.name, "no start transition defined")
        return self.get_transition(self._start_transition_name)

    @property
    def start_transition_name(self) -> str | None:
        return self._start_transition_name

    def has_role(self, role_name: str) -> bool:
        return role_name in self._roles

    def get_role(self, role_name: str) -> Role:
        try:
            return self._roles[role_name]
        except KeyError:
            raise RoleNotFoundError(self.name, role_name) from None

    def supports(self, entity_id: Any, entity: Any = None) -> bool:
        """True if this workflow handles the entity."""
        if entity_id.provider_name != self.provider_name:
            return False
        if self._condition is None:
            return True
        return self._condition.match(self, entity_id, entity)

    def check_integrity(self) -> Workflow:
        """Verify that every name referenced by the graph resolves.

        Raises:
            WorkflowConfigurationError: listing every problem found.
        """
        problems: list[str] = []

        if self._start_transition_name is None:
            problems.append("no start transition defined")

        for step in self._steps.values():
            for transition_name in step.allowed_transitions:
                if transition_name not in self._transitions:
                    problems.append(
                        f"step '{step.name}' allows unknown transition '{transition_name}'"
                    )

        for transition in self._transitions.values():
            if transition.step_to is None:
                problems.append(f"transition '{transition.name}' has no target step")
            elif transition.step_to.name not in self._steps:
                problems.append(
                    f"transition '{transition.name}' targets unknown step "
                    f"'{transition.step_to.name}'"
                )

        if problems:
            raise WorkflowConfigurationError(self.name, problems)
        return self

    def __repr__(self) -> str:
        return f"<Workflow {self.name} provider={self.provider_name}>"
