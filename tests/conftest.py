"""
Pytest fixtures for the workflow engine test suite.

Provides:
- Structured logging configuration and log capture
- Recording fakes for the transition collaborators (repositories,
  transaction handler, listener, form)
- A small two-step workflow used across the service tests
- SQLite in-memory database sessions for the persistence adapters
"""

import json
import logging
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Generator

import pytest
from sqlalchemy.orm import Session

from workflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from workflow_kernel.domain import (
    ActionResult,
    CallbackAction,
    Context,
    DeterministicClock,
    EntityId,
    ErrorCollection,
    Item,
    Step,
    Transition,
    Workflow,
)
from workflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture workflow_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, handler):
            handler.transit()
            logs = captured_logs()
            assert any(r["message"] == "transition_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("workflow_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Recording fakes
# =============================================================================


@dataclass
class CallLog:
    """Ordered record of collaborator calls shared by the fakes."""

    calls: list[str] = field(default_factory=list)

    def record(self, name: str) -> None:
        self.calls.append(name)


class FakeStateRepository:
    def __init__(self, log: CallLog, states=None):
        self.log = log
        self.states = list(states or [])
        self.fail_with: Exception | None = None

    def add(self, state) -> None:
        self.log.record("state.add")
        if self.fail_with is not None:
            raise self.fail_with
        self.states.append(state)

    def find(self, entity_id):
        return [s for s in self.states if s.entity_id == entity_id]


class FakeEntityRepository:
    def __init__(self, log: CallLog):
        self.log = log
        self.entities: list[Any] = []

    def add(self, entity) -> None:
        self.log.record("entity.add")
        self.entities.append(entity)


class FakeTransactionHandler:
    def __init__(self, log: CallLog):
        self.log = log

    def begin(self) -> None:
        self.log.record("begin")

    def commit(self) -> None:
        self.log.record("commit")

    def rollback(self) -> None:
        self.log.record("rollback")


class FakeForm:
    """Form whose validation result is fixed up front."""

    def __init__(self, valid: bool = True, values: dict | None = None):
        self.valid = valid
        self.values = dict(values or {})
        self.fields: list[str] = []
        self.validate_calls = 0
        self._errors = ErrorCollection()
        if not valid:
            self._errors.add_error("form.field.required", {"field": "comment"})

    @property
    def error_collection(self) -> ErrorCollection:
        return self._errors

    def add_field(self, name: str) -> None:
        self.fields.append(name)

    def validate(self, context: Context) -> bool:
        self.validate_calls += 1
        for key, value in self.values.items():
            context.set_property(key, value)
        return self.valid


@pytest.fixture
def form_factory():
    """Build a ``FakeForm``: ``form_factory(valid=False)``."""
    return FakeForm


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def state_repository(call_log) -> FakeStateRepository:
    return FakeStateRepository(call_log)


@pytest.fixture
def entity_repository(call_log) -> FakeEntityRepository:
    return FakeEntityRepository(call_log)


@pytest.fixture
def transaction_handler(call_log) -> FakeTransactionHandler:
    return FakeTransactionHandler(call_log)


# =============================================================================
# Clock and domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


def make_article_workflow(clock=None) -> Workflow:
    """
    Two-step article workflow::

        (start) --create--> draft --publish--> published (final)
    """
    workflow = Workflow("article", "articles", label="Article workflow")
    draft = Step("draft")
    published = Step("published", final=True)
    draft.allow_transition("publish")
    workflow.add_step(draft).add_step(published)

    create = Transition("create", step_to=draft, clock=clock)
    publish = Transition("publish", step_to=published, clock=clock)
    workflow.add_transition(create, is_start=True)
    workflow.add_transition(publish)
    return workflow


@pytest.fixture
def article_workflow(deterministic_clock) -> Workflow:
    return make_article_workflow(deterministic_clock)


@pytest.fixture
def article_item() -> Item:
    return Item.initialize(
        EntityId("articles", 1),
        {"id": 1, "title": "Hello", "published": False},
    )


@pytest.fixture
def started_article_item(article_workflow, article_item) -> Item:
    """Article item after a successful ``create`` transition."""
    transition = article_workflow.get_start_transition()
    transition.start(article_item, Context(), ErrorCollection())
    return article_item


@pytest.fixture
def failing_action():
    return CallbackAction(
        lambda transition, item, context: ActionResult.failure("boom"),
        name="failing",
    )


# =============================================================================
# Database fixtures (SQLite in-memory)
# =============================================================================


@pytest.fixture
def db_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Fresh session with no transaction begun."""
    sess = Session(bind=db_engine, expire_on_commit=False)
    yield sess
    sess.close()
