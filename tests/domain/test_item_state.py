"""Tests for Item state tracking and State records."""

import pytest

from workflow_kernel.domain.action import ActionResult, CallbackAction
from workflow_kernel.domain.context import Context
from workflow_kernel.domain.entity import EntityId
from workflow_kernel.domain.errors import ErrorCollection
from workflow_kernel.domain.item import Item
from workflow_kernel.domain.step import Step
from workflow_kernel.domain.transition import Transition
from workflow_kernel.exceptions import WorkflowConfigurationError, WorkflowNotStartedError


class TestItemLifecycle:
    def test_initialized_item_is_not_started(self, article_item):
        assert article_item.is_workflow_started() is False
        assert article_item.workflow_name is None
        assert article_item.current_step_name is None
        assert article_item.latest_state is None

    def test_started_item_tracks_workflow_and_step(self, started_article_item):
        assert started_article_item.workflow_name == "article"
        assert started_article_item.current_step_name == "draft"
        assert len(started_article_item.state_history) == 1

    def test_transit_before_start_fails(self, article_workflow, article_item):
        publish = article_workflow.get_transition("publish")
        with pytest.raises(WorkflowNotStartedError):
            publish.transit(article_item, Context(), ErrorCollection())

    def test_transit_with_foreign_transition_fails(self, started_article_item):
        foreign = Transition("archive", step_to=Step("archived")).bind_workflow("pages")
        with pytest.raises(WorkflowConfigurationError):
            foreign.transit(started_article_item, Context(), ErrorCollection())

    def test_successful_transit_moves_step(self, article_workflow, started_article_item):
        publish = article_workflow.get_transition("publish")
        state = publish.transit(started_article_item, Context(), ErrorCollection())

        assert state.start_step_name == "draft"
        assert state.step_name == "published"
        assert started_article_item.current_step_name == "published"
        assert started_article_item.state_history[-1] is state

    def test_failed_transit_records_target_but_keeps_position(
        self, article_workflow, started_article_item
    ):
        outcomes = [False, True]
        publish = article_workflow.get_transition("publish")
        publish.add_action(
            CallbackAction(
                lambda t, i, c: ActionResult.success() if outcomes.pop(0) else ActionResult.failure("no")
            )
        )

        failed = publish.transit(started_article_item, Context(), ErrorCollection())
        assert (failed.start_step_name, failed.step_name) == ("draft", "published")
        assert started_article_item.current_step_name == "draft"

        retried = publish.transit(started_article_item, Context(), ErrorCollection())
        assert (retried.start_step_name, retried.step_name) == ("draft", "published")
        assert started_article_item.current_step_name == "published"


class TestReconstitute:
    def test_restores_position_from_last_successful_state(
        self, article_workflow, started_article_item, failing_action
    ):
        publish = article_workflow.get_transition("publish")
        publish.add_action(failing_action)
        publish.transit(started_article_item, Context(), ErrorCollection())

        restored = Item.reconstitute(
            started_article_item.entity_id,
            started_article_item.entity,
            started_article_item.state_history,
        )

        assert restored.workflow_name == "article"
        assert restored.current_step_name == "draft"
        assert len(restored.state_history) == 2

    def test_failed_start_restores_as_started(self, article_workflow, failing_action):
        item = Item.initialize(EntityId("articles", 2), {"id": 2})
        create = article_workflow.get_start_transition()
        create.add_action(failing_action)
        create.start(item, Context(), ErrorCollection())

        restored = Item.reconstitute(item.entity_id, item.entity, item.state_history)
        assert restored.is_workflow_started() is True
        assert restored.workflow_name == "article"
        assert restored.current_step_name == "draft"

    def test_empty_history_is_not_started(self, article_item):
        restored = Item.reconstitute(article_item.entity_id, article_item.entity, [])
        assert restored.is_workflow_started() is False
        assert restored.current_step_name is None


class TestState:
    def test_state_is_frozen(self, started_article_item):
        state = started_article_item.latest_state
        with pytest.raises(AttributeError):
            state.success = False

    def test_snapshots_errors_and_data(self, article_workflow, article_item):
        errors = ErrorCollection().add_error("note", {"k": 1})
        context = Context({"comment": "first"})

        state = article_workflow.get_start_transition().start(article_item, context, errors)
        context.set_property("comment", "changed")
        errors.add_error("later")

        assert state.data == {"comment": "first"}
        assert state.errors == [["note", {"k": 1}, None]]

    def test_to_dict(self, started_article_item, deterministic_clock):
        record = started_article_item.latest_state.to_dict()

        assert record["entity_id"] == "articles::1"
        assert record["workflow_name"] == "article"
        assert record["transition_name"] == "create"
        assert record["step_name"] == "draft"
        assert record["success"] is True
        assert record["reached_at"] == deterministic_clock.now().isoformat()
