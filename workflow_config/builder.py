"""
Workflow builder -- turns ``WorkflowDef`` source artifacts into live graphs.

Actions are referenced by name in definitions; ``ActionRegistry`` maps each
name to a factory called with the reference's options.  Condition strings
become ``ExpressionCondition`` objects.

Failure modes:
    - WorkflowConfigurationError if a definition references an unknown
      action, an unknown step, or fails ``Workflow.check_integrity()``.
    - ExpressionError if a condition expression is invalid.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from workflow_config.expression import ExpressionCondition
from workflow_config.schema import ActionRef, WorkflowDef
from workflow_kernel.domain.action import Action, ActionResult
from workflow_kernel.domain.clock import Clock
from workflow_kernel.domain.permission import Permission
from workflow_kernel.domain.role import Role
from workflow_kernel.domain.step import Step
from workflow_kernel.domain.transition import Transition
from workflow_kernel.domain.workflow import Workflow
from workflow_kernel.exceptions import WorkflowConfigurationError
from workflow_kernel.logging_config import get_logger

logger = get_logger("config.builder")

ActionFactory = Callable[..., Action]


class ActionRegistry:
    """Maps action names used in definitions to action factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ActionFactory] = {}

    def register(self, name: str, factory: ActionFactory) -> None:
        """Register a factory for an action by name."""
        self._factories[name] = factory

    def has(self, name: str) -> bool:
        return name in self._factories

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def create(self, ref: ActionRef) -> Action:
        """Instantiate the action referenced by ``ref``.

        Raises:
            KeyError: if no factory is registered under ``ref.name``.
        """
        try:
            factory = self._factories[ref.name]
        except KeyError:
            raise KeyError(f"No action registered under '{ref.name}'") from None
        action = factory(**ref.options)
        if not action.name:
            action.name = ref.name
        return action


# ---------------------------------------------------------------------------
# Built-in actions
# ---------------------------------------------------------------------------


class SetPropertyAction(Action):
    """Stores a fixed value in the transition context."""

    def __init__(self, key: str, value: Any = None):
        self.name = "set_property"
        self.key = key
        self.value = value

    def transit(self, transition, item, context):
        context.set_property(self.key, self.value)
        return ActionResult.success()


class RequirePropertyAction(Action):
    """Fails unless the context holds a non-empty value for ``key``."""

    def __init__(self, key: str):
        self.name = "require_property"
        self.key = key

    def transit(self, transition, item, context):
        if context.get_property(self.key) in (None, ""):
            return ActionResult.failure(
                f"Property '{self.key}' is required",
                {"key": self.key},
            )
        return ActionResult.success()


def default_action_registry() -> ActionRegistry:
    """Return an ActionRegistry with the built-in actions registered."""
    registry = ActionRegistry()
    registry.register("set_property", SetPropertyAction)
    registry.register("require_property", RequirePropertyAction)
    return registry


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_workflow(
    definition: WorkflowDef,
    registry: ActionRegistry | None = None,
    clock: Clock | None = None,
) -> Workflow:
    """Build and integrity-check the workflow described by ``definition``."""
    registry = registry or default_action_registry()
    workflow = Workflow(
        definition.name,
        definition.provider_name,
        label=definition.label or None,
        config=definition.config,
    )

    for step_def in definition.steps:
        step = Step(
            step_def.name,
            label=step_def.label or None,
            final=step_def.final,
            permission=_permission(definition.name, step_def.permission),
        )
        for transition_name in step_def.allowed_transitions:
            step.allow_transition(transition_name)
        workflow.add_step(step)

    for transition_def in definition.transitions:
        if not workflow.has_step(transition_def.to):
            raise WorkflowConfigurationError(
                definition.name,
                f"transition '{transition_def.name}' targets unknown step '{transition_def.to}'",
            )

        transition = Transition(
            transition_def.name,
            step_to=workflow.get_step(transition_def.to),
            label=transition_def.label or None,
            permission=_permission(definition.name, transition_def.permission),
            clock=clock,
        )
        for expression in transition_def.pre_conditions:
            transition.add_pre_condition(ExpressionCondition(expression))
        for expression in transition_def.conditions:
            transition.add_condition(ExpressionCondition(expression))
        for ref in transition_def.actions:
            transition.add_action(_create_action(definition.name, registry, ref))
        for ref in transition_def.post_actions:
            transition.add_post_action(_create_action(definition.name, registry, ref))

        workflow.add_transition(
            transition, is_start=transition_def.name == definition.start_transition
        )

    for role_def in definition.roles:
        workflow.add_role(
            Role.create(role_def.name, definition.name, role_def.permissions, role_def.label)
        )

    workflow.check_integrity()

    logger.debug(
        "workflow_built",
        extra={
            "workflow_name": workflow.name,
            "step_count": len(workflow.steps),
            "transition_count": len(workflow.transitions),
        },
    )
    return workflow


def _permission(workflow_name: str, permission_id: str | None) -> Permission | None:
    if not permission_id:
        return None
    return Permission.for_workflow_name(workflow_name, permission_id)


def _create_action(workflow_name: str, registry: ActionRegistry, ref: ActionRef) -> Action:
    if not registry.has(ref.name):
        raise WorkflowConfigurationError(workflow_name, f"unknown action '{ref.name}'")
    return registry.create(ref)
