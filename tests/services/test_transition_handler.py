"""
Tests for TransitionHandler -- the transaction-bounded transition use case.

Covers:
- construction guard for started and unstarted items
- validate(): input vs. no input, form failure error, listener veto,
  validity computed once per round
- transit(): collaborator call order, rollback and re-raise on any
  exception, no calls before validation, re-validation after each attempt
- failed transitions are still persisted and committed
- structured transition trace
"""

import pytest

from workflow_kernel.domain.action import Action, ActionResult, CallbackAction
from workflow_kernel.exceptions import (
    TransitionInvalidError,
    TransitionNotAllowedError,
    TransitionNotValidatedError,
)
from workflow_services.listener import Listener
from workflow_services.transition_handler import VALIDATE_FORM_FAILED, TransitionHandler


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class CommentAction(Action):
    """Requires a ``comment`` field and copies it onto the entity."""

    name = "comment"

    def is_input_required(self, item):
        return True

    def build_form(self, form, item):
        form.add_field("comment")

    def transit(self, transition, item, context):
        item.entity["comment"] = context.get_property("comment")
        return ActionResult.success()


class RecordingListener(Listener):
    def __init__(self, verdict=None, raise_on=None):
        self.events = []
        self.verdict = verdict
        self.raise_on = raise_on

    def on_build_form(self, form, workflow, item, context, transition_name):
        self.events.append(("build_form", transition_name))

    def on_validate(self, form, valid, workflow, item, context, transition_name):
        self.events.append(("validate", valid))
        return valid if self.verdict is None else self.verdict

    def on_pre_transit(self, workflow, item, context, transition_name):
        self.events.append(("pre_transit", transition_name))
        if self.raise_on == "pre_transit":
            raise RuntimeError("listener refused")

    def on_post_transit(self, workflow, item, context, state):
        self.events.append(("post_transit", state.transition_name))


@pytest.fixture
def make_handler(article_workflow, entity_repository, state_repository, transaction_handler):
    def _make(item, transition_name=None, listener=None):
        return TransitionHandler(
            item,
            article_workflow,
            transition_name,
            entity_repository,
            state_repository,
            transaction_handler,
            listener,
        )

    return _make


# ---------------------------------------------------------------------------
# Construction guard
# ---------------------------------------------------------------------------


class TestConstructionGuard:
    def test_unstarted_item_accepts_empty_name(self, make_handler, article_item):
        handler = make_handler(article_item)
        assert handler.transition.name == "create"
        assert handler.current_step is None

    def test_unstarted_item_accepts_start_transition_name(self, make_handler, article_item):
        assert make_handler(article_item, "create").transition.name == "create"

    def test_unstarted_item_rejects_other_names(self, make_handler, article_item):
        with pytest.raises(TransitionNotAllowedError) as exc_info:
            make_handler(article_item, "publish")
        assert exc_info.value.transition_name == "publish"
        assert exc_info.value.step_name is None

    def test_started_item_accepts_allowed_transition(self, make_handler, started_article_item):
        handler = make_handler(started_article_item, "publish")
        assert handler.transition.name == "publish"
        assert handler.current_step.name == "draft"

    def test_started_item_rejects_disallowed_transition(
        self, make_handler, started_article_item
    ):
        with pytest.raises(TransitionNotAllowedError) as exc_info:
            make_handler(started_article_item, "create")
        assert exc_info.value.step_name == "draft"

    def test_started_item_rejects_empty_name(self, make_handler, started_article_item):
        with pytest.raises(TransitionNotAllowedError):
            make_handler(started_article_item, None)

    def test_construction_makes_no_collaborator_calls(
        self, make_handler, article_item, call_log
    ):
        make_handler(article_item)
        assert call_log.calls == []


# ---------------------------------------------------------------------------
# validate()
# ---------------------------------------------------------------------------


class TestValidate:
    def test_no_input_required_is_valid_without_form_validation(
        self, make_handler, article_item, form_factory
    ):
        form = form_factory(valid=False)
        handler = make_handler(article_item)

        assert handler.is_input_required() is False
        assert handler.validate(form) is True
        assert form.validate_calls == 0
        assert handler.form is form

    def test_input_required_builds_and_validates_form(
        self, make_handler, article_workflow, started_article_item, form_factory
    ):
        article_workflow.get_transition("publish").add_action(CommentAction())
        form = form_factory(values={"comment": "ship it"})
        handler = make_handler(started_article_item, "publish")

        assert handler.is_input_required() is True
        assert handler.validate(form) is True
        assert form.fields == ["comment"]
        assert handler.context.get_property("comment") == "ship it"

    def test_failed_form_adds_error_with_form_errors(
        self, make_handler, article_workflow, started_article_item, form_factory
    ):
        article_workflow.get_transition("publish").add_action(CommentAction())
        handler = make_handler(started_article_item, "publish")

        assert handler.validate(form_factory(valid=False)) is False

        entry = handler.error_collection.get_error(0)
        assert entry.message == VALIDATE_FORM_FAILED
        assert entry.collection.get_error(0).message == "form.field.required"

    def test_validity_is_computed_once(
        self, make_handler, article_workflow, started_article_item, form_factory
    ):
        article_workflow.get_transition("publish").add_action(CommentAction())
        handler = make_handler(started_article_item, "publish")
        form = form_factory()

        handler.validate(form)
        handler.validate(form)

        assert form.validate_calls == 1

    def test_listener_sees_validity_and_can_veto(
        self, make_handler, article_item, form_factory
    ):
        listener = RecordingListener(verdict=False)
        handler = make_handler(article_item, listener=listener)

        assert handler.validate(form_factory()) is False
        assert listener.events == [("build_form", "create"), ("validate", True)]


# ---------------------------------------------------------------------------
# transit()
# ---------------------------------------------------------------------------


class TestTransit:
    def test_requires_validation(self, make_handler, article_item, call_log):
        handler = make_handler(article_item)

        with pytest.raises(TransitionNotValidatedError):
            handler.transit()
        assert call_log.calls == []

    def test_requires_successful_validation(
        self, make_handler, article_workflow, started_article_item, form_factory, call_log
    ):
        article_workflow.get_transition("publish").add_action(CommentAction())
        handler = make_handler(started_article_item, "publish")
        handler.validate(form_factory(valid=False))

        with pytest.raises(TransitionInvalidError):
            handler.transit()
        assert call_log.calls == []

    def test_start_persists_and_commits_in_order(
        self, make_handler, article_item, form_factory, call_log, state_repository,
        entity_repository,
    ):
        handler = make_handler(article_item)
        handler.validate(form_factory())

        state = handler.transit()

        assert call_log.calls == ["begin", "state.add", "entity.add", "commit"]
        assert state.success is True
        assert state.step_name == "draft"
        assert state_repository.states == [state]
        assert entity_repository.entities == [article_item.entity]
        assert article_item.current_step_name == "draft"

    def test_transit_moves_started_item(
        self, make_handler, article_workflow, started_article_item, form_factory
    ):
        article_workflow.get_transition("publish").add_action(CommentAction())
        handler = make_handler(started_article_item, "publish")
        handler.validate(form_factory(values={"comment": "ok"}))

        state = handler.transit()

        assert state.start_step_name == "draft"
        assert state.step_name == "published"
        assert started_article_item.entity["comment"] == "ok"

    def test_failed_transition_is_recorded_and_committed(
        self, make_handler, article_workflow, started_article_item, form_factory,
        failing_action, call_log,
    ):
        article_workflow.get_transition("publish").add_action(failing_action)
        handler = make_handler(started_article_item, "publish")
        handler.validate(form_factory())

        state = handler.transit()

        assert state.success is False
        assert state.start_step_name == "draft"
        assert state.step_name == "published"
        assert started_article_item.current_step_name == "draft"
        assert call_log.calls == ["begin", "state.add", "entity.add", "commit"]
        assert handler.error_collection.has_errors()

    def test_listener_hooks_run_around_execution(
        self, make_handler, article_item, form_factory
    ):
        listener = RecordingListener()
        handler = make_handler(article_item, listener=listener)
        handler.validate(form_factory())
        handler.transit()

        assert listener.events[-2:] == [("pre_transit", "create"), ("post_transit", "create")]

    def test_repository_failure_rolls_back_and_reraises(
        self, make_handler, article_item, form_factory, call_log, state_repository
    ):
        error = RuntimeError("disk full")
        state_repository.fail_with = error
        handler = make_handler(article_item)
        handler.validate(form_factory())

        with pytest.raises(RuntimeError) as exc_info:
            handler.transit()

        assert exc_info.value is error
        assert call_log.calls == ["begin", "state.add", "rollback"]

    def test_listener_failure_rolls_back_before_any_write(
        self, make_handler, article_item, form_factory, call_log
    ):
        handler = make_handler(article_item, listener=RecordingListener(raise_on="pre_transit"))
        handler.validate(form_factory())

        with pytest.raises(RuntimeError, match="listener refused"):
            handler.transit()
        assert call_log.calls == ["begin", "rollback"]

    def test_action_exception_rolls_back(
        self, make_handler, article_workflow, article_item, form_factory, call_log
    ):
        def explode(transition, item, context):
            raise ValueError("bad data")

        article_workflow.get_start_transition().add_action(CallbackAction(explode))
        handler = make_handler(article_item)
        handler.validate(form_factory())

        with pytest.raises(ValueError):
            handler.transit()
        assert call_log.calls == ["begin", "rollback"]

    def test_second_transit_needs_new_validation(
        self, make_handler, article_item, form_factory, state_repository
    ):
        handler = make_handler(article_item)
        handler.validate(form_factory())
        handler.transit()

        with pytest.raises(TransitionNotValidatedError):
            handler.transit()
        assert len(state_repository.states) == 1

    def test_validation_resets_after_failed_attempt(
        self, make_handler, article_item, form_factory, state_repository
    ):
        state_repository.fail_with = RuntimeError("once")
        handler = make_handler(article_item)
        handler.validate(form_factory())
        with pytest.raises(RuntimeError):
            handler.transit()

        with pytest.raises(TransitionNotValidatedError):
            handler.transit()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestTransitionTrace:
    def test_committed_transition_emits_trace(
        self, make_handler, article_item, form_factory, captured_logs
    ):
        handler = make_handler(article_item)
        handler.validate(form_factory())
        handler.transit()

        traces = [r for r in captured_logs() if r["message"] == "workflow_transition"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["trace_type"] == "WORKFLOW_TRANSITION"
        assert trace["outcome"] == "success"
        assert trace["from_step"] is None
        assert trace["to_step"] == "draft"
        assert trace["workflow"] == "article"
        assert trace["entity_id"] == "articles::1"
        assert trace["duration_ms"] >= 0

    def test_rollback_is_logged(
        self, make_handler, article_item, form_factory, state_repository, captured_logs
    ):
        state_repository.fail_with = RuntimeError("disk full")
        handler = make_handler(article_item)
        handler.validate(form_factory())
        with pytest.raises(RuntimeError):
            handler.transit()

        records = captured_logs()
        rolled_back = [r for r in records if r["message"] == "transition_rolled_back"]
        assert rolled_back[0]["level"] == "WARNING"
        assert rolled_back[0]["exc_type"] == "RuntimeError"
        traces = [r for r in records if r["message"] == "workflow_transition"]
        assert traces[0]["outcome"] == "rolled_back"
