"""
Transition conditions (``workflow_kernel.domain.conditions``).

Responsibility
--------------
Composable boolean guards evaluated against ``(transition, item, context)``.
Leaf conditions carry the business predicate; ``AndCondition`` and
``OrCondition`` compose any mix of leaves and composites.

Invariants enforced
-------------------
* Children are evaluated in the order they were added.
* A composite with zero children matches -- for AND *and* for OR.  The OR
  case deliberately differs from classical logic: an unconfigured guard
  means "unconditionally permitted".
* A failing composite appends exactly one aggregate error to the caller's
  collection, owning a fresh child collection with the branch errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from workflow_kernel.domain.errors import ErrorCollection

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.transition import Transition

AND_FAILED = "transition.condition.and.failed"
OR_FAILED = "transition.condition.or.failed"
CALLBACK_FAILED = "transition.condition.callback.failed"


@runtime_checkable
class Condition(Protocol):
    """Guard predicate over an item inside a transition request."""

    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool: ...


class ConditionCollection(ABC):
    """Ordered sequence of child conditions."""

    def __init__(self, conditions: Iterable[Condition] = ()) -> None:
        self._conditions: list[Condition] = []
        self.add_conditions(conditions)

    def add_condition(self, condition: Condition) -> ConditionCollection:
        self._conditions.append(condition)
        return self

    def add_conditions(self, conditions: Iterable[Condition]) -> ConditionCollection:
        for condition in conditions:
            self.add_condition(condition)
        return self

    def remove_condition(self, condition: Condition) -> ConditionCollection:
        self._conditions = [c for c in self._conditions if c is not condition]
        return self

    @property
    def conditions(self) -> tuple[Condition, ...]:
        return tuple(self._conditions)

    @abstractmethod
    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool: ...

    def __len__(self) -> int:
        return len(self._conditions)

    def __bool__(self) -> bool:
        return True


class AndCondition(ConditionCollection):
    """Matches if every child matches."""

    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        if not self._conditions:
            return True

        child_errors = ErrorCollection()
        success = True

        # No short-circuit: every failing branch reports its errors.
        for condition in self._conditions:
            if not condition.match(transition, item, context, child_errors):
                success = False

        if not success:
            errors.add_error(AND_FAILED, {}, child_errors)

        return success


class OrCondition(ConditionCollection):
    """Matches if any child matches; stops at the first match."""

    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        if not self._conditions:
            return True

        child_errors = ErrorCollection()

        for condition in self._conditions:
            if condition.match(transition, item, context, child_errors):
                return True

        errors.add_error(OR_FAILED, {}, child_errors)
        return False


class CallbackCondition:
    """Leaf condition wrapping a plain predicate.

    The predicate receives ``(transition, item, context)`` and returns a
    truthy value on success.  On failure ``message`` is recorded with
    ``params``.
    """

    def __init__(
        self,
        predicate: Callable[[Transition, Item, Context], Any],
        message: str = CALLBACK_FAILED,
        params: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> None:
        self.predicate = predicate
        self.message = message
        self.params = dict(params or {})
        self.name = name or getattr(predicate, "__name__", "callback")

    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        if self.predicate(transition, item, context):
            return True

        errors.add_error(self.message, {"condition": self.name, **self.params})
        return False

    def __repr__(self) -> str:
        return f"<CallbackCondition {self.name}>"
