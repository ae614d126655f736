"""
Transition listeners.

Responsibility:
    Extension hooks called by ``TransitionHandler`` at fixed points of a
    transition: after the form is built, after validation, before the
    transition runs and after it produced its ``State``.

Architecture position:
    Services layer.  ``on_validate`` may veto by returning False; every
    other hook is observational.  Exceptions raised from
    ``on_pre_transit`` / ``on_post_transit`` abort the transition and roll
    back the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from workflow_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.interfaces import Form
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.state import State
    from workflow_kernel.domain.workflow import Workflow

logger = get_logger("services.listener")


class Listener:
    """Listener with pass-through defaults; override the hooks you need."""

    def on_build_form(
        self,
        form: Form,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        pass

    def on_validate(
        self,
        form: Form,
        valid: bool,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> bool:
        return valid

    def on_pre_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        pass

    def on_post_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        state: State,
    ) -> None:
        pass


class LoggingListener(Listener):
    """Emits one structured log record per hook."""

    def on_build_form(
        self,
        form: Form,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        logger.debug(
            "transition_form_built",
            extra={
                "workflow_name": workflow.name,
                "transition_name": transition_name,
                "item": str(item.entity_id),
            },
        )

    def on_validate(
        self,
        form: Form,
        valid: bool,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> bool:
        logger.info(
            "transition_validated",
            extra={
                "workflow_name": workflow.name,
                "transition_name": transition_name,
                "item": str(item.entity_id),
                "valid": valid,
            },
        )
        return valid

    def on_pre_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        logger.info(
            "transition_started",
            extra={
                "workflow_name": workflow.name,
                "transition_name": transition_name,
                "item": str(item.entity_id),
                "from_step": item.current_step_name,
            },
        )

    def on_post_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        state: State,
    ) -> None:
        logger.info(
            "transition_finished",
            extra={
                "workflow_name": workflow.name,
                "transition_name": state.transition_name,
                "item": str(item.entity_id),
                "to_step": state.step_name,
                "success": state.success,
            },
        )


class ListenerChain(Listener):
    """Fans every hook out to its listeners in registration order."""

    def __init__(self, listeners: Iterable[Listener] = ()) -> None:
        self._listeners: list[Listener] = list(listeners)

    def add_listener(self, listener: Listener) -> ListenerChain:
        self._listeners.append(listener)
        return self

    @property
    def listeners(self) -> tuple[Listener, ...]:
        return tuple(self._listeners)

    def on_build_form(
        self,
        form: Form,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        for listener in self._listeners:
            listener.on_build_form(form, workflow, item, context, transition_name)

    def on_validate(
        self,
        form: Form,
        valid: bool,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> bool:
        # Each listener sees the verdict of the previous one.
        for listener in self._listeners:
            valid = listener.on_validate(form, valid, workflow, item, context, transition_name)
        return valid

    def on_pre_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        transition_name: str,
    ) -> None:
        for listener in self._listeners:
            listener.on_pre_transit(workflow, item, context, transition_name)

    def on_post_transit(
        self,
        workflow: Workflow,
        item: Item,
        context: Context,
        state: State,
    ) -> None:
        for listener in self._listeners:
            listener.on_post_transit(workflow, item, context, state)
