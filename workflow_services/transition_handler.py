"""
workflow_services.transition_handler -- Transaction-bounded transition use case.

Responsibility:
    Runs one transition for one item: guards that the transition is legal
    from the item's position, validates user input, executes the transition
    inside a transaction, and persists the resulting ``State`` together with
    the entity.  Listener hooks are driven at each phase.

Architecture position:
    Services layer.  Coordinates kernel domain objects (``Workflow``,
    ``Transition``, ``Item``) with the caller's collaborators
    (``EntityRepository``, ``StateRepository``, ``TransactionHandler``,
    ``Listener``).  Holds no persistence logic of its own.

Invariants enforced:
    - Construction fails unless the transition is legal: an unstarted item
      accepts only an empty name or the start transition's name; a started
      item accepts only names its current step allows.
    - ``transit()`` requires a successful ``validate()`` and performs no
      collaborator calls otherwise.
    - Atomicity: either the state and the entity are both persisted and the
      transaction committed, or the transaction is rolled back.
    - Exceptions are never swallowed; rollback happens and the original
      exception is re-raised unchanged.
    - Validity is computed once per validation round and cleared after
      every ``transit()`` attempt.

Failure modes:
    - TransitionNotAllowedError at construction.
    - TransitionNotValidatedError / TransitionInvalidError from ``transit()``.
    - Any exception from listeners, actions or repositories, after rollback.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from workflow_kernel.domain.context import Context
from workflow_kernel.domain.errors import ErrorCollection
from workflow_kernel.exceptions import (
    TransitionInvalidError,
    TransitionNotAllowedError,
    TransitionNotValidatedError,
)
from workflow_kernel.logging_config import LogContext, get_logger
from workflow_services.listener import Listener

if TYPE_CHECKING:
    from workflow_kernel.domain.interfaces import (
        EntityRepository,
        Form,
        StateRepository,
        TransactionHandler,
    )
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.state import State
    from workflow_kernel.domain.step import Step
    from workflow_kernel.domain.transition import Transition
    from workflow_kernel.domain.workflow import Workflow

logger = get_logger("services.transition_handler")

VALIDATE_FORM_FAILED = "transition.validate.form.failed"

# Trace message and outcome codes for structured logging
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_FAILED = "failed"
OUTCOME_ROLLED_BACK = "rolled_back"


def _emit_transition_trace(
    workflow_name: str,
    transition_name: str,
    entity_id: str,
    from_step: str | None,
    outcome: str,
    duration_ms: float,
    to_step: str | None = None,
    error_count: int = 0,
) -> None:
    """Emit a structured transition record for traceability."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": datetime.now(UTC).isoformat(),
        "workflow_name": workflow_name,
        "transition_name": transition_name,
        "item": entity_id,
        "from_step": from_step,
        "to_step": to_step,
        "outcome": outcome,
        "error_count": error_count,
        "duration_ms": round(duration_ms, 3),
    }
    logger.info("workflow_transition", extra=record)


class TransitionHandler:
    """
    Per-request orchestrator for a single transition.

    Contract:
        Construct, optionally inspect ``is_input_required()``, call
        ``validate(form)``, then ``transit()``.  A second ``transit()``
        needs a new ``validate()``.

    Non-goals:
        - Does not decide authorization; permission checks belong to the
          caller.
        - Does not own the session or connection behind the transaction.
    """

    def __init__(
        self,
        item: Item,
        workflow: Workflow,
        transition_name: str | None,
        entity_repository: EntityRepository,
        state_repository: StateRepository,
        transaction_handler: TransactionHandler,
        listener: Listener | None = None,
    ) -> None:
        self._item = item
        self._workflow = workflow
        self._transition_name = transition_name
        self._entity_repository = entity_repository
        self._state_repository = state_repository
        self._transaction_handler = transaction_handler
        self._listener = listener or Listener()
        self._context = Context()
        self._error_collection = ErrorCollection()
        self._form: Form | None = None
        self._validated: bool | None = None

        self._guard_allowed_transition(transition_name)

        logger.debug(
            "transition_handler_created",
            extra={
                "workflow_name": workflow.name,
                "transition_name": self.transition.name,
                "item": str(item.entity_id),
                "started": item.is_workflow_started(),
            },
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def workflow(self) -> Workflow:
        return self._workflow

    @property
    def item(self) -> Item:
        return self._item

    @property
    def form(self) -> Form | None:
        return self._form

    @property
    def context(self) -> Context:
        return self._context

    @property
    def error_collection(self) -> ErrorCollection:
        return self._error_collection

    @property
    def transition(self) -> Transition:
        if self.is_workflow_started():
            return self._workflow.get_transition(self._transition_name)
        return self._workflow.get_start_transition()

    @property
    def current_step(self) -> Step | None:
        if self.is_workflow_started():
            return self._workflow.get_step(self._item.current_step_name)
        return None

    def is_workflow_started(self) -> bool:
        return self._item.is_workflow_started()

    def is_input_required(self) -> bool:
        return self.transition.is_input_required(self._item)

    # ------------------------------------------------------------------
    # Use case
    # ------------------------------------------------------------------

    def validate(self, form: Form) -> bool:
        """
        Build ``form`` for the transition and validate it.

        The listener's ``on_validate`` gets the computed validity and its
        return value is the result.
        """
        transition = self.transition
        self._build_form(form, transition)

        if self._validated is None:
            if transition.is_input_required(self._item):
                self._validated = bool(form.validate(self._context))
                if not self._validated:
                    self._error_collection.add_error(
                        VALIDATE_FORM_FAILED, {}, form.error_collection
                    )
            else:
                self._validated = True

        return self._listener.on_validate(
            form,
            self._validated,
            self._workflow,
            self._item,
            self._context,
            transition.name,
        )

    def transit(self) -> State:
        """
        Execute the transition and persist the result atomically.

        Raises:
            TransitionNotValidatedError: ``validate()`` was not called.
            TransitionInvalidError: ``validate()`` failed.
        """
        transition = self.transition
        self._guard_validated(transition.name)

        from_step = self._item.current_step_name
        t0 = time.monotonic()

        with LogContext.bind(
            workflow=self._workflow.name,
            entity_id=str(self._item.entity_id),
            transition=transition.name,
        ):
            self._transaction_handler.begin()

            try:
                self._listener.on_pre_transit(
                    self._workflow, self._item, self._context, transition.name
                )

                state = self._execute_transition(transition)

                self._listener.on_post_transit(
                    self._workflow, self._item, self._context, state
                )

                self._state_repository.add(state)
                self._entity_repository.add(self._item.entity)
            except Exception:
                self._transaction_handler.rollback()
                logger.warning("transition_rolled_back", exc_info=True)
                _emit_transition_trace(
                    workflow_name=self._workflow.name,
                    transition_name=transition.name,
                    entity_id=str(self._item.entity_id),
                    from_step=from_step,
                    outcome=OUTCOME_ROLLED_BACK,
                    duration_ms=(time.monotonic() - t0) * 1000,
                    error_count=self._error_collection.count_errors(),
                )
                raise
            finally:
                self._validated = None

            self._transaction_handler.commit()
            logger.info(
                "transition_committed",
                extra={"success": state.success, "to_step": state.step_name},
            )
            _emit_transition_trace(
                workflow_name=self._workflow.name,
                transition_name=transition.name,
                entity_id=str(self._item.entity_id),
                from_step=from_step,
                to_step=state.step_name,
                outcome=OUTCOME_SUCCESS if state.success else OUTCOME_FAILED,
                duration_ms=(time.monotonic() - t0) * 1000,
                error_count=self._error_collection.count_errors(),
            )

        return state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute_transition(self, transition: Transition) -> State:
        if self.is_workflow_started():
            return transition.transit(self._item, self._context, self._error_collection)
        return transition.start(self._item, self._context, self._error_collection)

    def _build_form(self, form: Form, transition: Transition) -> None:
        self._form = form
        transition.build_form(form, self._item)
        self._listener.on_build_form(
            form, self._workflow, self._item, self._context, transition.name
        )

    def _guard_validated(self, transition_name: str) -> None:
        if self._validated is None:
            raise TransitionNotValidatedError(transition_name)
        if not self._validated:
            raise TransitionInvalidError(transition_name)

    def _guard_allowed_transition(self, transition_name: str | None) -> None:
        if not self.is_workflow_started():
            if not transition_name:
                return
            if transition_name == self._workflow.get_start_transition().name:
                return
            raise TransitionNotAllowedError(
                self._workflow.name,
                transition_name,
                None,
                str(self._item.entity_id),
            )

        step = self.current_step
        if step is None or not step.is_transition_allowed(transition_name):
            raise TransitionNotAllowedError(
                self._workflow.name,
                transition_name,
                step.name if step is not None else None,
                str(self._item.entity_id),
            )
