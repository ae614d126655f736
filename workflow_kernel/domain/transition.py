"""
Transition -- a named, guarded edge of the workflow graph.

Responsibility
--------------
Owns the guards (pre-condition and condition), the ordered actions and
post-actions, an optional permission, and the target step.  Executing a
transition evaluates the guards, runs the actions, and asks the item to
record the resulting ``State``.

Architecture position
---------------------
**Kernel domain layer**.  Pure apart from structured logging; the
surrounding transaction is owned by ``workflow_services``.

Invariants enforced
-------------------
* A transition refers to its workflow by name only and is bound once.
* ``condition`` and ``pre_condition`` stay ``None`` until the first
  condition is added; an absent guard always passes.
* Every action runs even after an earlier one failed, so all failures are
  reported together.
* Post-actions run only after the primary actions succeeded.

Failure modes
-------------
* Guard and action failures are recorded in the caller's
  ``ErrorCollection``; they never raise.
* Any exception from an action other than ``ActionFailedError``
  propagates unchanged.
* ``WorkflowConfigurationError`` -- rebinding to another workflow.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from workflow_kernel.domain.action import ActionResult, action_identity
from workflow_kernel.domain.clock import Clock, SystemClock
from workflow_kernel.domain.conditions import AndCondition, Condition
from workflow_kernel.domain.errors import ErrorCollection
from workflow_kernel.domain.permission import Permission
from workflow_kernel.exceptions import ActionFailedError, WorkflowConfigurationError
from workflow_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from workflow_kernel.domain.action import Action
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.interfaces import Form
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.state import State
    from workflow_kernel.domain.step import Step

logger = get_logger("domain.transition")

PRE_CONDITION_FAILED = "transition.precondition.failed"
CONDITION_FAILED = "transition.condition.failed"
ACTION_FAILED = "transition.action.failed"


class Transition:
    def __init__(
        self,
        name: str,
        step_to: Step | None = None,
        label: str | None = None,
        permission: Permission | None = None,
        config: dict[str, Any] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.name = name
        self.label = label or name
        self.step_to = step_to
        self.permission = permission
        self.config = dict(config or {})
        self._clock = clock or SystemClock()
        self._workflow_name: str | None = None
        self._actions: list[Action] = []
        self._post_actions: list[Action] = []
        self._condition: AndCondition | None = None
        self._pre_condition: AndCondition | None = None

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    @property
    def workflow_name(self) -> str | None:
        return self._workflow_name

    def bind_workflow(self, workflow_name: str) -> Transition:
        """Attach this transition to ``workflow_name``.  Binding is permanent."""
        if self._workflow_name is not None and self._workflow_name != workflow_name:
            raise WorkflowConfigurationError(
                workflow_name,
                f"transition '{self.name}' is already bound to workflow "
                f"'{self._workflow_name}'",
            )
        self._workflow_name = workflow_name
        return self

    @property
    def clock(self) -> Clock:
        return self._clock

    def add_action(self, action: Action) -> Transition:
        self._actions.append(action)
        return self

    def add_actions(self, actions: Iterable[Action]) -> Transition:
        for action in actions:
            self.add_action(action)
        return self

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions)

    def add_post_action(self, action: Action) -> Transition:
        self._post_actions.append(action)
        return self

    @property
    def post_actions(self) -> tuple[Action, ...]:
        return tuple(self._post_actions)

    def add_condition(self, condition: Condition) -> Transition:
        if self._condition is None:
            self._condition = AndCondition()
        self._condition.add_condition(condition)
        return self

    @property
    def condition(self) -> AndCondition | None:
        return self._condition

    def add_pre_condition(self, condition: Condition) -> Transition:
        if self._pre_condition is None:
            self._pre_condition = AndCondition()
        self._pre_condition.add_condition(condition)
        return self

    @property
    def pre_condition(self) -> AndCondition | None:
        return self._pre_condition

    # ------------------------------------------------------------------
    # Permission
    # ------------------------------------------------------------------

    def has_permission(self, permission: Permission) -> bool:
        if self.permission is None:
            return False
        return self.permission.equals(permission)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def build_form(self, form: Form, item: Item) -> Transition:
        for action in self._actions:
            action.build_form(form, item)
        return self

    def is_input_required(self, item: Item) -> bool:
        return any(action.is_input_required(item) for action in self._actions)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def check_pre_condition(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        return self._guard(self._pre_condition, PRE_CONDITION_FAILED, item, context, errors)

    def check_condition(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        return self._guard(self._condition, CONDITION_FAILED, item, context, errors)

    def is_allowed(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        """Pre-condition first; the condition is skipped once it fails."""
        if not self.check_pre_condition(item, context, errors):
            return False
        return self.check_condition(item, context, errors)

    def is_available(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        """Whether the transition can be offered to a user.

        When input is still required only the pre-condition is checked; the
        condition may depend on input that does not exist yet.
        """
        if self.is_input_required(item):
            return self.check_pre_condition(item, context, errors)
        return self.is_allowed(item, context, errors)

    def _guard(
        self,
        condition: AndCondition | None,
        message: str,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        if condition is None:
            return True

        child_errors = ErrorCollection()
        if condition.match(self, item, context, child_errors):
            return True

        errors.add_error(message, {"transition": self.name}, child_errors)
        return False

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_actions(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        return self._execute(self._actions, item, context, errors)

    def execute_post_actions(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        return self._execute(self._post_actions, item, context, errors)

    def _execute(
        self,
        actions: Iterable[Action],
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        success = True

        for action in actions:
            try:
                result = action.transit(self, item, context)
            except ActionFailedError as exc:
                result = ActionResult.failure(str(exc), exc.details or None)

            if result is None or result.ok:
                continue

            success = False
            name = action_identity(action)
            errors.add_error(
                ACTION_FAILED,
                {
                    "action": name,
                    "message": result.message,
                    "details": dict(result.details or {}),
                    "properties": context.properties,
                },
            )
            logger.warning(
                "action_failed",
                extra={
                    "transition_name": self.name,
                    "action": name,
                    "reason": result.message,
                },
            )

        return success

    def start(self, item: Item, context: Context, errors: ErrorCollection) -> State:
        """Run this transition as the first transition of ``item``'s workflow."""
        success = self._run(item, context, errors)
        state = item.start(self, context, errors, success, self._clock.now())
        return self._finish(state, item, context, errors)

    def transit(self, item: Item, context: Context, errors: ErrorCollection) -> State:
        """Run this transition on an already started item."""
        success = self._run(item, context, errors)
        state = item.transit(self, context, errors, success, self._clock.now())
        return self._finish(state, item, context, errors)

    def _run(self, item: Item, context: Context, errors: ErrorCollection) -> bool:
        return self.is_allowed(item, context, errors) and self.execute_actions(
            item, context, errors
        )

    def _finish(
        self,
        state: State,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> State:
        # The recorded state is final; post-action failures are only reported.
        if state.success:
            self.execute_post_actions(item, context, errors)
        return state

    def __repr__(self) -> str:
        target = self.step_to.name if self.step_to is not None else None
        return f"<Transition {self._workflow_name}:{self.name} -> {target}>"
