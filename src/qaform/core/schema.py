"""
Answer schema and example generation.

Both are scoped to the questions visible for the current answers and follow
the form's question order.
"""

from __future__ import annotations

import math
from typing import Any

from .ir import Constraint, FormSpec, QuestionSpec, QuestionType
from .visibility import VisibilityMap

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

_JSON_TYPES: dict[QuestionType, str] = {
    QuestionType.STRING: "string",
    QuestionType.BOOLEAN: "boolean",
    QuestionType.INTEGER: "integer",
    QuestionType.NUMBER: "number",
    QuestionType.ENUM: "string",
    QuestionType.LIST: "array",
}


def _visible(spec: FormSpec, visibility: VisibilityMap) -> list[QuestionSpec]:
    return [q for q in spec.questions if visibility.get(q.id, True)]


# =============================================================================
# JSON Schema
# =============================================================================


def answers_schema(spec: FormSpec, visibility: VisibilityMap) -> dict[str, Any]:
    """
    Build a JSON Schema (draft 2020-12) describing the visible answers.

    Args:
        spec: Form specification
        visibility: Visibility map for the current answers

    Returns:
        Object schema with one property per visible question.
    """
    questions = _visible(spec, visibility)
    return {
        "$schema": JSON_SCHEMA_DIALECT,
        "title": spec.title,
        "type": "object",
        "properties": {q.id: question_schema(q) for q in questions},
        "required": [q.id for q in questions if q.required],
        "additionalProperties": False,
    }


def question_schema(question: QuestionSpec) -> dict[str, Any]:
    """Schema for a single question's value."""
    schema: dict[str, Any] = {"type": _JSON_TYPES[question.type], "title": question.title}
    if question.description:
        schema["description"] = question.description
    if question.choices:
        schema["enum"] = list(question.choices)
    if question.default_value is not None:
        schema["default"] = question.default_value
    if question.constraint is not None:
        schema.update(_constraint_keywords(question.constraint))

    if question.type == QuestionType.LIST and question.list_spec is not None:
        fields = question.list_spec.fields
        schema["items"] = {
            "type": "object",
            "properties": {f.id: question_schema(f) for f in fields},
            "required": [f.id for f in fields if f.required],
            "additionalProperties": False,
        }
        if question.list_spec.min_items is not None:
            schema["minItems"] = question.list_spec.min_items
        if question.list_spec.max_items is not None:
            schema["maxItems"] = question.list_spec.max_items
    return schema


def _constraint_keywords(constraint: Constraint) -> dict[str, Any]:
    keywords: dict[str, Any] = {}
    if constraint.pattern is not None:
        keywords["pattern"] = constraint.pattern
    if constraint.min is not None:
        keywords["minimum"] = constraint.min
    if constraint.max is not None:
        keywords["maximum"] = constraint.max
    if constraint.min_len is not None:
        keywords["minLength"] = constraint.min_len
    if constraint.max_len is not None:
        keywords["maxLength"] = constraint.max_len
    return keywords


# =============================================================================
# Example answers
# =============================================================================


def example_answers(spec: FormSpec, visibility: VisibilityMap) -> dict[str, Any]:
    """Plausible answers for every visible question, keyed by question id."""
    return {q.id: example_value(q) for q in _visible(spec, visibility)}


def example_value(question: QuestionSpec) -> Any:
    """
    Example value for one question.

    The default wins when present. Otherwise: the first choice for enums,
    ``example-<id>`` for strings, ``false`` for booleans, zero for numbers,
    and one example entry for lists. Length and range constraints are
    respected.
    """
    if question.default_value is not None:
        return question.default_value

    constraint = question.constraint or Constraint()
    match question.type:
        case QuestionType.ENUM:
            return (question.choices or [""])[0]
        case QuestionType.STRING:
            return _fit_length(f"example-{question.id}", constraint)
        case QuestionType.BOOLEAN:
            return False
        case QuestionType.INTEGER:
            return _clamp_int(constraint)
        case QuestionType.NUMBER:
            return _clamp_number(constraint)
        case QuestionType.LIST:
            return _example_items(question)
    return None


def _fit_length(text: str, constraint: Constraint) -> str:
    if constraint.min_len is not None and len(text) < constraint.min_len:
        text = text + "x" * (constraint.min_len - len(text))
    if constraint.max_len is not None and len(text) > constraint.max_len:
        text = text[: constraint.max_len]
    return text


def _clamp_number(constraint: Constraint) -> float:
    value = 0.0
    if constraint.min is not None and value < constraint.min:
        value = float(constraint.min)
    if constraint.max is not None and value > constraint.max:
        value = float(constraint.max)
    return value


def _clamp_int(constraint: Constraint) -> int:
    value = 0
    if constraint.min is not None and value < constraint.min:
        value = math.ceil(constraint.min)
    if constraint.max is not None and value > constraint.max:
        value = math.floor(constraint.max)
    return value


def _example_items(question: QuestionSpec) -> list[dict[str, Any]]:
    list_spec = question.list_spec
    assert list_spec is not None
    count = max(1, list_spec.min_items or 0)
    if list_spec.max_items is not None:
        count = min(count, list_spec.max_items)
    item = {f.id: example_value(f) for f in list_spec.fields}
    return [dict(item) for _ in range(count)]
