"""
Expression types for qaform IR.

Expressions drive ``visible_if`` conditions, computed fields, and cross-field
validations. They arrive as JSON objects tagged by ``op``:

- Literals: ``{"op": "literal", "value": true}``
- Answer references: ``{"op": "answer", "path": "q1"}``
- Presence checks: ``{"op": "is_set", "path": "q1"}``
- Boolean references: ``{"op": "var", "path": "/answers/flag"}``
- Comparisons: ``{"op": "eq", "left": ..., "right": ...}`` (eq/ne/lt/lte/gt/gte)
- Logic: ``{"op": "and", "expressions": [...]}``, ``or``, ``{"op": "not", "expression": ...}``

Wherever a condition is accepted, a text shorthand such as
``q1 == "yes" and is_set(q2)`` may be given instead; it is parsed into the
same tree when the spec is loaded.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)

MAX_EXPRESSION_DEPTH = 32

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class CompareOp(StrEnum):
    """Comparison operators."""

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


_COMPARE_SYMBOLS = {
    CompareOp.EQ: "==",
    CompareOp.NE: "!=",
    CompareOp.LT: "<",
    CompareOp.LTE: "<=",
    CompareOp.GT: ">",
    CompareOp.GTE: ">=",
}

# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class LiteralExpr(BaseModel):
    """A literal JSON value."""

    op: Literal["literal"] = "literal"
    value: Any = Field(default=None, description="The literal value")

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return str(self.value)


class AnswerRef(BaseModel):
    """
    Reference to an answer value.

    Bare paths (``q1``, ``address/city``) resolve inside ``answers``; paths
    starting with ``/`` are JSON pointers against the whole context.
    """

    op: Literal["answer"] = "answer"
    path: str = Field(description="Answer path or context JSON pointer")

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return self.path


class IsSetExpr(BaseModel):
    """True when the path resolves to a non-null value."""

    op: Literal["is_set"] = "is_set"
    path: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return f"is_set({self.path})"


class VarRef(BaseModel):
    """Boolean answer reference; indeterminate when absent or not a boolean."""

    op: Literal["var"] = "var"
    path: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return f"var({self.path})"


class CompareExpr(BaseModel):
    """Binary comparison: left op right."""

    op: Literal["eq", "ne", "lt", "lte", "gt", "gte"]
    left: Expr
    right: Expr

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("left", "right", mode="before")
    @classmethod
    def bare_path_operand(cls, v: Any) -> Any:
        """Accept the older form where operands are plain path strings."""
        if isinstance(v, str):
            return {"op": "answer", "path": v}
        return v

    @property
    def compare_op(self) -> CompareOp:
        return CompareOp(self.op)

    def __str__(self) -> str:
        return f"({self.left} {_COMPARE_SYMBOLS[self.compare_op]} {self.right})"


class AndExpr(BaseModel):
    """Conjunction of one or more expressions."""

    op: Literal["and"] = "and"
    expressions: list[Expr] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return "(" + " and ".join(str(e) for e in self.expressions) + ")"


class OrExpr(BaseModel):
    """Disjunction of one or more expressions."""

    op: Literal["or"] = "or"
    expressions: list[Expr] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return "(" + " or ".join(str(e) for e in self.expressions) + ")"


class NotExpr(BaseModel):
    """Negation."""

    op: Literal["not"] = "not"
    expression: Expr

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return f"not {self.expression}"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = Annotated[
    Union[LiteralExpr, AnswerRef, IsSetExpr, VarRef, CompareExpr, AndExpr, OrExpr, NotExpr],
    Field(discriminator="op"),
]

# Rebuild models for recursive forward references
CompareExpr.model_rebuild()
AndExpr.model_rebuild()
OrExpr.model_rebuild()
NotExpr.model_rebuild()


def children(expr: Any) -> list[Any]:
    """Direct sub-expressions of a node."""
    if isinstance(expr, CompareExpr):
        return [expr.left, expr.right]
    if isinstance(expr, (AndExpr, OrExpr)):
        return list(expr.expressions)
    if isinstance(expr, NotExpr):
        return [expr.expression]
    return []


def expression_depth(expr: Any) -> int:
    """Depth of an expression tree, computed without recursion."""
    deepest = 0
    stack = [(expr, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in children(node))
    return deepest


def _parse_shorthand(value: Any) -> Any:
    """Parse condition text shorthand into a tagged tree."""
    if not isinstance(value, str):
        return value
    from qaform.core.errors import ExpressionParseError
    from qaform.core.expression_lang.parser import parse_expr

    try:
        return parse_expr(value)
    except ExpressionParseError as e:
        raise ValueError(f"invalid expression {value!r}: {e.message}") from e


def _check_depth(value: Any) -> Any:
    if expression_depth(value) > MAX_EXPRESSION_DEPTH:
        raise ValueError(f"expression nesting exceeds maximum depth of {MAX_EXPRESSION_DEPTH}")
    return value


# Condition fields on specs accept either a tagged tree or shorthand text.
Condition = Annotated[Expr, BeforeValidator(_parse_shorthand), AfterValidator(_check_depth)]
