"""Tests for SessionTransactionHandler and the engine helpers."""

import pytest
from sqlalchemy import select

from workflow_kernel.db.engine import (
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from workflow_kernel.db.models import EntityModel
from workflow_kernel.db.repositories import (
    SqlAlchemyEntityRepository,
    SqlAlchemyStateRepository,
)
from workflow_kernel.db.transaction import SessionTransactionHandler
from workflow_kernel.domain.interfaces import (
    EntityRepository,
    StateRepository,
    TransactionHandler,
)
from workflow_kernel.exceptions import TransactionStateError


def _entity(identifier):
    return EntityModel(provider_name="articles", identifier=identifier, payload={})


class TestSessionTransactionHandler:
    def test_commit_without_begin(self, session):
        with pytest.raises(TransactionStateError) as exc_info:
            SessionTransactionHandler(session).commit()
        assert exc_info.value.operation == "commit"

    def test_rollback_without_begin(self, session):
        with pytest.raises(TransactionStateError):
            SessionTransactionHandler(session).rollback()

    def test_double_begin(self, session):
        handler = SessionTransactionHandler(session)
        handler.begin()
        with pytest.raises(TransactionStateError):
            handler.begin()
        handler.rollback()

    def test_commit_persists(self, session):
        handler = SessionTransactionHandler(session)
        handler.begin()
        session.add(_entity("1"))
        handler.commit()

        assert handler.active is False
        with get_session() as other:
            assert other.scalar(select(EntityModel.identifier)) == "1"

    def test_rollback_discards(self, session):
        handler = SessionTransactionHandler(session)
        handler.begin()
        session.add(_entity("1"))
        session.flush()
        handler.rollback()

        with get_session() as other:
            assert other.scalar(select(EntityModel)) is None

    def test_handler_is_reusable(self, session):
        handler = SessionTransactionHandler(session)
        for identifier in ("1", "2"):
            handler.begin()
            session.add(_entity(identifier))
            handler.commit()

        with get_session() as other:
            assert len(other.scalars(select(EntityModel)).all()) == 2


class TestSessionScope:
    def test_commits_on_exit(self, db_engine):
        with session_scope() as session:
            session.add(_entity("1"))

        with get_session() as other:
            assert other.scalar(select(EntityModel.identifier)) == "1"

    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(_entity("1"))
                session.flush()
                raise RuntimeError("abort")

        with get_session() as other:
            assert other.scalar(select(EntityModel)) is None


class TestEngineHelpers:
    def test_session_factory_bound_to_engine(self, db_engine):
        with get_session_factory()() as other:
            assert other.get_bind() is db_engine

    def test_uninitialized_engine(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()


def test_adapters_satisfy_collaborator_protocols(session):
    assert isinstance(SqlAlchemyStateRepository(session), StateRepository)
    assert isinstance(SqlAlchemyEntityRepository(session, "articles"), EntityRepository)
    assert isinstance(SessionTransactionHandler(session), TransactionHandler)
