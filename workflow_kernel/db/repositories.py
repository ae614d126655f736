"""
SQLAlchemy-backed state and entity repositories.

Responsibility:
    Persist recorded ``State`` values and workflow entities through a
    caller-supplied ``Session``.

Architecture position:
    Kernel > DB adapters.  Satisfy ``StateRepository`` and
    ``EntityRepository`` from ``workflow_kernel.domain.interfaces``.

Invariants enforced:
    - Flush only: repositories never commit or roll back.  The surrounding
      ``TransactionHandler`` (or ``session_scope``) owns the boundary.
    - States are append-only; ``find`` returns them in recorded order.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

from workflow_kernel.db.models import EntityModel, StateModel
from workflow_kernel.db.serialization import to_json_safe
from workflow_kernel.domain.entity import EntityId
from workflow_kernel.domain.state import State
from workflow_kernel.logging_config import get_logger

logger = get_logger("db.repositories")


class SqlAlchemyStateRepository:
    """Append-only ``StateRepository`` over the ``workflow_states`` table."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, state: State) -> None:
        sequence = self._next_sequence(state.entity_id)
        self.session.add(StateModel.from_dto(state, sequence))
        self.session.flush()

        logger.debug(
            "state_recorded",
            extra={
                "entity_id": str(state.entity_id),
                "transition_name": state.transition_name,
                "sequence": sequence,
                "success": state.success,
            },
        )

    def find(self, entity_id: EntityId) -> list[State]:
        rows = self.session.scalars(
            select(StateModel)
            .where(
                StateModel.entity_provider == entity_id.provider_name,
                StateModel.entity_identifier == entity_id.identifier,
            )
            .order_by(StateModel.sequence)
        ).all()
        return [row.to_dto() for row in rows]

    def _next_sequence(self, entity_id: EntityId) -> int:
        current = self.session.scalar(
            select(func.max(StateModel.sequence)).where(
                StateModel.entity_provider == entity_id.provider_name,
                StateModel.entity_identifier == entity_id.identifier,
            )
        )
        return (current or 0) + 1


class SqlAlchemyEntityRepository:
    """
    ``EntityRepository`` for one provider.

    Mapped ORM instances are added to the session as they are.  Anything
    else (a mapping or a plain object) is stored as a JSON snapshot in
    ``workflow_entities``, keyed by the value of ``id_field``.
    """

    def __init__(self, session: Session, provider_name: str, id_field: str = "id"):
        self.session = session
        self.provider_name = provider_name
        self.id_field = id_field

    def add(self, entity: Any) -> None:
        if inspect(entity, raiseerr=False) is not None:
            self.session.add(entity)
            self.session.flush()
            return

        payload = self._payload(entity)
        identifier = str(payload[self.id_field])
        row = self._find_row(identifier)

        if row is None:
            row = EntityModel(
                provider_name=self.provider_name,
                identifier=identifier,
                payload=payload,
            )
            self.session.add(row)
        else:
            row.payload = payload

        self.session.flush()

    def get(self, identifier: Any) -> dict[str, Any] | None:
        """Return the stored snapshot for ``identifier``, if any."""
        row = self._find_row(str(identifier))
        return dict(row.payload) if row is not None else None

    def _find_row(self, identifier: str) -> EntityModel | None:
        return self.session.scalar(
            select(EntityModel).where(
                EntityModel.provider_name == self.provider_name,
                EntityModel.identifier == identifier,
            )
        )

    def _payload(self, entity: Any) -> dict[str, Any]:
        if isinstance(entity, Mapping):
            data = dict(entity)
        else:
            data = dict(vars(entity))
        if self.id_field not in data:
            raise KeyError(f"Entity has no '{self.id_field}' field")
        return to_json_safe(data)
