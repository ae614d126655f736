"""
Collaborator protocols consumed by the transition machinery.

Implementations are supplied by the caller.  ``workflow_kernel.db``
ships SQLAlchemy-backed ones for the repositories and the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.entity import EntityId
    from workflow_kernel.domain.errors import ErrorCollection
    from workflow_kernel.domain.state import State


@runtime_checkable
class EntityRepository(Protocol):
    """Stores the domain entity after a transition."""

    def add(self, entity: Any) -> None: ...


@runtime_checkable
class StateRepository(Protocol):
    """Append-only store of recorded states."""

    def add(self, state: State) -> None: ...

    def find(self, entity_id: EntityId) -> Iterable[State]:
        """Return the states recorded for ``entity_id``, oldest first."""
        ...


@runtime_checkable
class TransactionHandler(Protocol):
    """Unit of work around one transition."""

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class Form(Protocol):
    """User input for a transition.

    Actions declare their fields through ``Action.build_form``; how fields
    are represented is up to the implementation.
    """

    @property
    def error_collection(self) -> ErrorCollection: ...

    def validate(self, context: Context) -> bool:
        """Validate submitted input, writing accepted values into ``context``."""
        ...
