"""
Restricted expressions for transition conditions.

Conditions in workflow definitions are written as small Python-syntax
expressions.  This module validates them against a fixed operator set,
evaluates them by walking the AST (never ``eval``), and wraps them as
``Condition`` objects for ``Transition.add_condition``.

Allowed:
  - Comparisons: <, <=, >, >=, ==, !=, is, is not
  - Logical: and, or, not
  - Field access: root.field_name (entity, properties, params)
  - Literals: numbers, strings, booleans, None
  - Functions: abs(), len()
  - Membership: in, not in
  - Conditional: ternary (a if b else c)
  - Arithmetic: +, -, *, /

Rejected:
  - imports, arbitrary function calls, deep attribute chains,
    subscripts, lambda, arbitrary names
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from workflow_kernel.exceptions import WorkflowKernelError
from workflow_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from workflow_kernel.domain.context import Context
    from workflow_kernel.domain.errors import ErrorCollection
    from workflow_kernel.domain.item import Item
    from workflow_kernel.domain.transition import Transition

logger = get_logger("config.expression")

# Functions allowed in expressions
ALLOWED_FUNCTIONS: dict[str, Any] = {"abs": abs, "len": len}

# Roots allowed for field access (root.field_name)
ALLOWED_ROOTS: frozenset[str] = frozenset({"entity", "properties", "params"})

_CONSTANT_NAMES: dict[str, Any] = {"True": True, "False": False, "None": None}

ALLOWED_NAMES: frozenset[str] = frozenset(set(_CONSTANT_NAMES) | ALLOWED_ROOTS)

_COMPARE_OPS: dict[type, Any] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_BIN_OPS: dict[type, Any] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

EXPRESSION_FAILED = "transition.condition.expression.failed"


@dataclass(frozen=True)
class ExpressionASTError:
    """A validation error found in an expression."""

    expression: str
    message: str
    node_type: str = ""
    lineno: int = 0
    col_offset: int = 0


class ExpressionError(WorkflowKernelError, ValueError):
    """Expression failed restricted-AST validation."""

    code: str = "INVALID_EXPRESSION"

    def __init__(self, expression: str, errors: list[ExpressionASTError]):
        self.expression = expression
        self.errors = errors
        super().__init__(
            f"Invalid expression {expression!r}: "
            + "; ".join(e.message for e in errors)
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_expression(expression: str) -> list[ExpressionASTError]:
    """Validate an expression against the restricted AST.

    Returns a list of errors. Empty list means the expression is valid.
    """
    errors: list[ExpressionASTError] = []

    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as e:
        return [
            ExpressionASTError(
                expression=expression,
                message=f"Syntax error: {e.msg}",
                lineno=e.lineno or 0,
                col_offset=e.offset or 0,
            )
        ]

    _validate_node(tree.body, expression, errors)
    return errors


def _error(expression: str, message: str, node_type: str) -> ExpressionASTError:
    return ExpressionASTError(expression=expression, message=message, node_type=node_type)


def _validate_node(node: ast.AST, expression: str, errors: list[ExpressionASTError]) -> None:
    if isinstance(node, ast.BoolOp):
        for value in node.values:
            _validate_node(value, expression, errors)

    elif isinstance(node, ast.UnaryOp):
        if not isinstance(node.op, (ast.Not, ast.USub)):
            name = type(node.op).__name__
            errors.append(_error(expression, f"Disallowed unary operator: {name}", name))
        _validate_node(node.operand, expression, errors)

    elif isinstance(node, ast.Compare):
        _validate_node(node.left, expression, errors)
        for comparator in node.comparators:
            _validate_node(comparator, expression, errors)
        for op in node.ops:
            if type(op) not in _COMPARE_OPS:
                name = type(op).__name__
                errors.append(_error(expression, f"Disallowed comparison: {name}", name))

    elif isinstance(node, ast.BinOp):
        if type(node.op) in _BIN_OPS:
            _validate_node(node.left, expression, errors)
            _validate_node(node.right, expression, errors)
        else:
            name = type(node.op).__name__
            errors.append(_error(expression, f"Disallowed binary operator: {name}", name))

    elif isinstance(node, ast.Call):
        if isinstance(node.func, ast.Name) and node.func.id in ALLOWED_FUNCTIONS:
            for arg in node.args:
                _validate_node(arg, expression, errors)
            if node.keywords:
                errors.append(_error(expression, "Keyword arguments are not allowed", "Call"))
        else:
            errors.append(
                _error(expression, f"Disallowed function call: {_get_name(node.func)}", "Call")
            )

    elif isinstance(node, ast.Attribute):
        if not (isinstance(node.value, ast.Name) and node.value.id in ALLOWED_ROOTS):
            errors.append(
                _error(
                    expression,
                    f"Disallowed attribute access: {_get_name(node)}. "
                    f"Only {', '.join(sorted(ALLOWED_ROOTS))}.field_name is allowed.",
                    "Attribute",
                )
            )

    elif isinstance(node, ast.Name):
        if node.id not in ALLOWED_NAMES:
            errors.append(_error(expression, f"Disallowed name: {node.id}", "Name"))

    elif isinstance(node, ast.Constant):
        if not isinstance(node.value, (int, float, str, bool, type(None))):
            name = type(node.value).__name__
            errors.append(_error(expression, f"Disallowed constant type: {name}", "Constant"))

    elif isinstance(node, (ast.List, ast.Tuple)):
        for elt in node.elts:
            _validate_node(elt, expression, errors)

    elif isinstance(node, ast.IfExp):
        _validate_node(node.test, expression, errors)
        _validate_node(node.body, expression, errors)
        _validate_node(node.orelse, expression, errors)

    else:
        name = type(node).__name__
        errors.append(_error(expression, f"Disallowed AST node type: {name}", name))


def _get_name(node: ast.AST) -> str:
    """Extract a human-readable name from an AST node."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return f"{_get_name(node.value)}.{node.attr}"
    return type(node).__name__


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def compile_expression(expression: str) -> ast.Expression:
    """Parse and validate ``expression``.

    Raises:
        ExpressionError: if validation finds any problem.
    """
    errors = validate_expression(expression)
    if errors:
        raise ExpressionError(expression, errors)
    return ast.parse(expression, mode="eval")


def evaluate_expression(expression: str | ast.Expression, namespace: Mapping[str, Any]) -> Any:
    """Evaluate a validated expression against ``namespace``.

    ``namespace`` maps the allowed roots to mappings or objects; a missing
    field evaluates to None.
    """
    tree = compile_expression(expression) if isinstance(expression, str) else expression
    return _eval(tree.body, namespace)


def _lookup(root: Any, field_name: str) -> Any:
    if root is None:
        return None
    if isinstance(root, Mapping):
        return root.get(field_name)
    return getattr(root, field_name, None)


def _eval(node: ast.AST, ns: Mapping[str, Any]) -> Any:
    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            result: Any = True
            for value in node.values:
                result = _eval(value, ns)
                if not result:
                    return result
            return result
        result = False
        for value in node.values:
            result = _eval(value, ns)
            if result:
                return result
        return result

    if isinstance(node, ast.UnaryOp):
        operand = _eval(node.operand, ns)
        return not operand if isinstance(node.op, ast.Not) else -operand

    if isinstance(node, ast.Compare):
        left = _eval(node.left, ns)
        for op, comparator in zip(node.ops, node.comparators):
            right = _eval(comparator, ns)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    if isinstance(node, ast.BinOp):
        return _BIN_OPS[type(node.op)](_eval(node.left, ns), _eval(node.right, ns))

    if isinstance(node, ast.Call):
        func = ALLOWED_FUNCTIONS[node.func.id]  # type: ignore[attr-defined]
        return func(*(_eval(arg, ns) for arg in node.args))

    if isinstance(node, ast.Attribute):
        return _lookup(ns.get(node.value.id), node.attr)  # type: ignore[attr-defined]

    if isinstance(node, ast.Name):
        if node.id in _CONSTANT_NAMES:
            return _CONSTANT_NAMES[node.id]
        return ns.get(node.id)

    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, ast.List):
        return [_eval(elt, ns) for elt in node.elts]

    if isinstance(node, ast.Tuple):
        return tuple(_eval(elt, ns) for elt in node.elts)

    if isinstance(node, ast.IfExp):
        return _eval(node.body, ns) if _eval(node.test, ns) else _eval(node.orelse, ns)

    raise ExpressionError(
        ast.unparse(node),
        [_error(ast.unparse(node), "Unsupported node", type(node).__name__)],
    )


# ---------------------------------------------------------------------------
# Condition
# ---------------------------------------------------------------------------


class ExpressionCondition:
    """Transition condition backed by a restricted expression.

    The expression sees ``entity`` (the item's entity), ``properties`` and
    ``params`` (from the context).  Evaluation errors count as a failed
    match and are logged.
    """

    def __init__(self, expression: str, message: str = EXPRESSION_FAILED):
        self.expression = expression
        self.message = message
        self._tree = compile_expression(expression)

    def match(
        self,
        transition: Transition,
        item: Item,
        context: Context,
        errors: ErrorCollection,
    ) -> bool:
        namespace = {
            "entity": item.entity,
            "properties": context.properties,
            "params": context.params,
        }
        try:
            result = bool(_eval(self._tree.body, namespace))
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "condition_evaluation_error",
                extra={
                    "transition_name": transition.name,
                    "expression": self.expression,
                    "error": str(e),
                },
            )
            errors.add_error(self.message, {"expression": self.expression, "error": str(e)})
            return False

        if not result:
            errors.add_error(self.message, {"expression": self.expression})
        return result

    def __repr__(self) -> str:
        return f"<ExpressionCondition {self.expression!r}>"
