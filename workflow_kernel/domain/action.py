"""
Transition actions (``workflow_kernel.domain.action``).

An action is one side-effecting step executed while a transition runs.
Failure is reported by returning a failed ``ActionResult``; raising
``ActionFailedError`` is treated the same way.  Any other exception is
fatal and propagates out of the transition.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.interfaces import Form
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.transition import Transition


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    message: str = ""
    details: dict[str, object] | None = None

    @classmethod
    def success(cls, message: str = "", details: dict[str, object] | None = None) -> ActionResult:
        return cls(ok=True, message=message, details=details)

    @classmethod
    def failure(cls, message: str, details: dict[str, object] | None = None) -> ActionResult:
        return cls(ok=False, message=message, details=details)


class Action(ABC):
    """Base class for transition actions."""

    name: str = ""

    @property
    def identity(self) -> str:
        return self.name or type(self).__name__

    def is_input_required(self, item: Item) -> bool:
        return False

    def build_form(self, form: Form, item: Item) -> None:
        """Add the fields this action needs to ``form``."""

    @abstractmethod
    def transit(self, transition: Transition, item: Item, context: Context) -> ActionResult | None:
        """Execute the action.  ``None`` counts as success."""
        ...


class CallbackAction(Action):
    """Action wrapping a plain callable ``(transition, item, context)``."""

    def __init__(
        self,
        callback: Callable[[Transition, Item, Context], ActionResult | None],
        name: str | None = None,
        input_required: bool = False,
    ) -> None:
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "callback")
        self.input_required = input_required

    def is_input_required(self, item: Item) -> bool:
        return self.input_required

    def transit(self, transition: Transition, item: Item, context: Context) -> ActionResult | None:
        return self.callback(transition, item, context)


def action_identity(action: Any) -> str:
    """Name used to report ``action`` in errors and logs."""
    identity = getattr(action, "identity", None)
    if isinstance(identity, str) and identity:
        return identity
    return getattr(action, "name", None) or type(action).__name__
