"""
SessionTransactionHandler -- ``TransactionHandler`` over a SQLAlchemy session.

By default ``begin()`` takes over the session-level transaction, including
one SQLAlchemy autobegan on an earlier read (``WorkflowManager.create_item``
always reads the state history first), and ``commit()`` commits it.

With ``nested=True`` ``begin()`` opens a SAVEPOINT instead, so a transition
can run inside an outer ``session_scope()`` and be rolled back on its own.
The outer transaction stays owned, and committed, by the caller.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, SessionTransaction

from workflow_kernel.exceptions import TransactionStateError
from workflow_kernel.logging_config import get_logger

logger = get_logger("db.transaction")


class SessionTransactionHandler:
    def __init__(self, session: Session, nested: bool = False):
        self.session = session
        self.nested = nested
        self._transaction: SessionTransaction | None = None

    @property
    def active(self) -> bool:
        return self._transaction is not None

    def begin(self) -> None:
        if self._transaction is not None:
            raise TransactionStateError("begin")

        if self.nested:
            self._transaction = self.session.begin_nested()
        else:
            # get_transaction() is the root transaction, never a savepoint.
            self._transaction = self.session.get_transaction() or self.session.begin()

        logger.debug("transaction_started", extra={"nested": self.nested})

    def commit(self) -> None:
        transaction = self._take("commit")
        transaction.commit()
        logger.debug("transaction_committed", extra={"nested": self.nested})

    def rollback(self) -> None:
        transaction = self._take("rollback")
        transaction.rollback()
        logger.debug("transaction_rolled_back", extra={"nested": self.nested})

    def _take(self, operation: str) -> SessionTransaction:
        if self._transaction is None:
            raise TransactionStateError(operation)
        transaction, self._transaction = self._transaction, None
        return transaction
