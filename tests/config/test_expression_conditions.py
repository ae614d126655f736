"""Tests for restricted condition expressions."""

import pytest

from workflow_config.expression import (
    EXPRESSION_FAILED,
    ExpressionCondition,
    ExpressionError,
    evaluate_expression,
    validate_expression,
)
from workflow_kernel.domain.context import Context
from workflow_kernel.domain.errors import ErrorCollection


class TestValidation:
    @pytest.mark.parametrize(
        "expression",
        [
            "entity.title != ''",
            "properties.amount > 10 and not params.dry_run",
            "len(entity.tags) >= 2",
            "entity.status in ['draft', 'review']",
            "abs(properties.delta) * 2 <= 10",
            "entity.owner is None",
            "1 if entity.flag else 0",
            "-properties.amount < 0",
        ],
    )
    def test_allowed(self, expression):
        assert validate_expression(expression) == []

    @pytest.mark.parametrize(
        "expression,fragment",
        [
            ("__import__('os')", "Disallowed function call"),
            ("open('x')", "Disallowed function call"),
            ("entity.owner.name", "Disallowed attribute access"),
            ("entity['title']", "Disallowed AST node type"),
            ("lambda: 1", "Disallowed AST node type"),
            ("secret", "Disallowed name"),
            ("len(entity.tags, key=1)", "Keyword arguments"),
            ("2 ** 8", "Disallowed binary operator"),
            ("entity.title ==", "Syntax error"),
        ],
    )
    def test_rejected(self, expression, fragment):
        errors = validate_expression(expression)
        assert errors
        assert any(fragment in e.message for e in errors)

    def test_invalid_expression_raises_at_construction(self):
        with pytest.raises(ExpressionError) as exc_info:
            ExpressionCondition("os.system('x')")
        assert exc_info.value.code == "INVALID_EXPRESSION"
        assert isinstance(exc_info.value, ValueError)


class TestEvaluation:
    def test_mapping_and_object_roots(self):
        class Entity:
            title = "Hello"

        ns = {"entity": Entity(), "properties": {"n": 3}, "params": {}}
        assert evaluate_expression("entity.title == 'Hello' and properties.n + 1 == 4", ns)

    def test_missing_field_is_none(self):
        assert evaluate_expression("properties.missing is None", {"properties": {}})

    def test_short_circuit(self):
        # The right operand would fail (None > 1) if evaluated.
        assert evaluate_expression("False and properties.x > 1", {"properties": {}}) is False


class TestExpressionCondition:
    def test_match(self, article_workflow, article_item):
        condition = ExpressionCondition("entity.title == 'Hello'")
        errors = ErrorCollection()

        assert condition.match(article_workflow.get_start_transition(), article_item, Context(), errors)
        assert not errors.has_errors()

    def test_mismatch_records_expression(self, article_workflow, article_item):
        condition = ExpressionCondition("properties.approved == True")
        errors = ErrorCollection()

        matched = condition.match(
            article_workflow.get_start_transition(), article_item, Context(), errors
        )

        assert matched is False
        assert errors.get_error(0).message == EXPRESSION_FAILED
        assert errors.get_error(0).params == {"expression": "properties.approved == True"}

    def test_evaluation_error_is_a_failed_match(
        self, article_workflow, article_item, captured_logs
    ):
        condition = ExpressionCondition("entity.title > 5")
        errors = ErrorCollection()

        matched = condition.match(
            article_workflow.get_start_transition(), article_item, Context(), errors
        )

        assert matched is False
        assert "error" in errors.get_error(0).params
        assert any(r["message"] == "condition_evaluation_error" for r in captured_logs())

    def test_guards_a_transition(self, article_workflow, article_item):
        create = article_workflow.get_start_transition()
        create.add_condition(ExpressionCondition("params.user == 'ann'"))

        assert create.is_allowed(article_item, Context(params={"user": "ann"}), ErrorCollection())
        assert not create.is_allowed(article_item, Context(params={"user": "bob"}), ErrorCollection())
