"""
Expression evaluator for qaform conditions.

Evaluates expression trees against a context mapping that exposes at least
an ``answers`` object. Pure evaluation: no I/O, no side effects, no eval().

Boolean results are three-valued. ``None`` means indeterminate, which happens
when a comparison references an answer that is not present. ``and`` and
``or`` follow Kleene logic symmetrically:

- ``and`` is false if any child is false, else indeterminate if any child is
  indeterminate, else true.
- ``or`` is true if any child is true, else indeterminate if any child is
  indeterminate, else false.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from qaform.core.errors import ExpressionDepthError
from qaform.core.ir.expressions import (
    MAX_EXPRESSION_DEPTH,
    AndExpr,
    AnswerRef,
    CompareExpr,
    CompareOp,
    Expr,
    IsSetExpr,
    LiteralExpr,
    NotExpr,
    OrExpr,
    VarRef,
)
from qaform.core.pointer import MISSING, escape_token, resolve_pointer

__all__ = [
    "MISSING",
    "answer_context",
    "evaluate",
    "evaluate_value",
    "json_equal",
    "resolve_path",
]


def answer_context(answers: Mapping[str, Any] | None, **extra: Any) -> dict[str, Any]:
    """Build an evaluation context around an answer mapping."""
    context: dict[str, Any] = dict(extra)
    context["answers"] = dict(answers or {})
    return context


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Resolve an expression path against a context.

    Paths starting with ``/`` are JSON pointers against the whole context;
    bare paths are pointers relative to ``answers``.

    Returns:
        The value, or ``MISSING`` if the path does not resolve.
    """
    if path.startswith("/"):
        return resolve_pointer(context, path)
    segments = "/".join(escape_token(segment) for segment in path.split("/"))
    return resolve_pointer(context, "/answers/" + segments)


def evaluate(
    expr: Expr,
    context: Mapping[str, Any],
    *,
    max_depth: int = MAX_EXPRESSION_DEPTH,
) -> bool | None:
    """Evaluate an expression to a boolean, or ``None`` if indeterminate.

    Args:
        expr: Expression tree.
        context: Mapping with an ``answers`` object (and optionally more).
        max_depth: Nesting bound; deeper trees raise ``ExpressionDepthError``.

    Returns:
        True, False, or None when the result cannot be decided.
    """
    return _truth(expr, context, 1, max_depth)


def evaluate_value(
    expr: Expr,
    context: Mapping[str, Any],
    *,
    max_depth: int = MAX_EXPRESSION_DEPTH,
) -> Any:
    """Evaluate an expression to a JSON value.

    Literals and answer references yield their value; boolean nodes yield
    their boolean result. Unresolvable references and indeterminate results
    yield ``MISSING``.
    """
    return _value(expr, context, 1, max_depth)


def _guard(depth: int, max_depth: int) -> None:
    if depth > max_depth:
        raise ExpressionDepthError(max_depth)


def _value(expr: Expr, ctx: Mapping[str, Any], depth: int, max_depth: int) -> Any:
    _guard(depth, max_depth)
    if isinstance(expr, LiteralExpr):
        return expr.value
    if isinstance(expr, AnswerRef):
        return resolve_path(ctx, expr.path)
    result = _truth(expr, ctx, depth, max_depth)
    return MISSING if result is None else result


def _truth(expr: Expr, ctx: Mapping[str, Any], depth: int, max_depth: int) -> bool | None:
    """Dispatch boolean evaluation to the appropriate handler."""
    _guard(depth, max_depth)

    if isinstance(expr, LiteralExpr):
        return expr.value if isinstance(expr.value, bool) else None

    if isinstance(expr, (AnswerRef, VarRef)):
        value = resolve_path(ctx, expr.path)
        return value if isinstance(value, bool) else None

    if isinstance(expr, IsSetExpr):
        value = resolve_path(ctx, expr.path)
        return value is not MISSING and value is not None

    if isinstance(expr, CompareExpr):
        left = _value(expr.left, ctx, depth + 1, max_depth)
        right = _value(expr.right, ctx, depth + 1, max_depth)
        if left is MISSING or right is MISSING:
            return None
        return _compare(expr.compare_op, left, right)

    if isinstance(expr, AndExpr):
        indeterminate = False
        for child in expr.expressions:
            result = _truth(child, ctx, depth + 1, max_depth)
            if result is False:
                return False
            if result is None:
                indeterminate = True
        return None if indeterminate else True

    if isinstance(expr, OrExpr):
        indeterminate = False
        for child in expr.expressions:
            result = _truth(child, ctx, depth + 1, max_depth)
            if result is True:
                return True
            if result is None:
                indeterminate = True
        return None if indeterminate else False

    if isinstance(expr, NotExpr):
        result = _truth(expr.expression, ctx, depth + 1, max_depth)
        return None if result is None else not result

    raise TypeError(f"Unknown expression type: {type(expr).__name__}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def json_equal(left: Any, right: Any) -> bool:
    """JSON equality: numbers compare numerically, booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    return type(left) is type(right) and left == right


def _compare(op: CompareOp, left: Any, right: Any) -> bool | None:
    if op == CompareOp.EQ:
        return json_equal(left, right)
    if op == CompareOp.NE:
        return not json_equal(left, right)

    # Ordering is defined for number/number and string/string only
    if not (
        (_is_number(left) and _is_number(right))
        or (isinstance(left, str) and isinstance(right, str))
    ):
        return None
    if op == CompareOp.LT:
        return left < right
    if op == CompareOp.LTE:
        return left <= right
    if op == CompareOp.GT:
        return left > right
    if op == CompareOp.GTE:
        return left >= right
    raise ValueError(f"Unknown comparison op: {op}")
