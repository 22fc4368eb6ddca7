"""
Question definitions for qaform IR.

This module contains the question type system: question kinds, value
constraints, list metadata, and the question specification itself.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .expressions import Condition


class QuestionType(StrEnum):
    """Enumeration of supported question types."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    ENUM = "enum"
    LIST = "list"


class Constraint(BaseModel):
    """
    Value constraint attached to a question.

    Examples:
        - Constraint(pattern=r"^[a-z0-9-]+$", max_len=63)
        - Constraint(min=1, max=65535)
    """

    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    min_len: int | None = Field(default=None, ge=0)
    max_len: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def check_bounds(self) -> Constraint:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("constraint min cannot exceed max")
        if self.min_len is not None and self.max_len is not None and self.min_len > self.max_len:
            raise ValueError("constraint min_len cannot exceed max_len")
        return self


class ListSpec(BaseModel):
    """
    Repeated-entry metadata for list questions.

    Each entry is an object whose keys are the ids of ``fields``. Fields are
    plain questions and cannot themselves be lists.
    """

    min_items: int | None = Field(default=None, ge=0)
    max_items: int | None = Field(default=None, ge=0)
    fields: list[QuestionSpec] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def check_fields(self) -> ListSpec:
        if (
            self.min_items is not None
            and self.max_items is not None
            and self.min_items > self.max_items
        ):
            raise ValueError("list min_items cannot exceed max_items")
        seen: set[str] = set()
        for item_field in self.fields:
            if item_field.type == QuestionType.LIST:
                raise ValueError(f"list field '{item_field.id}' cannot itself be a list")
            if item_field.id in seen:
                raise ValueError(f"duplicate list field id '{item_field.id}'")
            seen.add(item_field.id)
        return self


class QuestionSpec(BaseModel):
    """
    A single question in a form.

    Attributes:
        id: Unique question id, also the answer key
        type: Value type expected for the answer
        title: Prompt shown to the user
        required: Whether a visible question must be answered
        choices: Allowed values (enum only)
        default_value: Suggested value surfaced to the user
        secret: Whether the answer should be masked by formatters
        visible_if: Condition controlling whether the question is shown
        constraint: Pattern/length/range limits on the value
        list_spec: Entry metadata (list only), serialized as ``list``
        computed: Expression deriving the value from other answers
        computed_overridable: Whether an explicit answer replaces the computed value
    """

    id: str = Field(min_length=1)
    type: QuestionType
    title: str
    description: str | None = None
    required: bool = False
    choices: list[str] | None = None
    default_value: str | int | float | bool | None = None
    secret: bool = False
    visible_if: Condition | None = None
    constraint: Constraint | None = None
    list_spec: ListSpec | None = Field(default=None, alias="list")
    computed: Condition | None = None
    computed_overridable: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Accept ``String``/``STRING`` spellings of the type name."""
        if isinstance(v, str):
            return v.lower()
        return v

    @model_validator(mode="after")
    def check_shape(self) -> QuestionSpec:
        if self.type == QuestionType.ENUM:
            if not self.choices:
                raise ValueError(f"enum question '{self.id}' requires non-empty choices")
        elif self.choices is not None:
            raise ValueError(f"question '{self.id}' defines choices but is not an enum")

        if self.type == QuestionType.LIST:
            if self.list_spec is None:
                raise ValueError(f"list question '{self.id}' must define list metadata")
            if self.default_value is not None:
                raise ValueError(f"list question '{self.id}' cannot have a default value")
            if self.computed is not None:
                raise ValueError(f"list question '{self.id}' cannot be computed")
        elif self.list_spec is not None:
            raise ValueError(f"question '{self.id}' defines list metadata but is not a list")

        if self.default_value is not None and not _default_matches(self):
            raise ValueError(
                f"default value {self.default_value!r} does not match "
                f"type '{self.type}' of question '{self.id}'"
            )
        return self

    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    @property
    def is_computed(self) -> bool:
        return self.computed is not None


def _default_matches(question: QuestionSpec) -> bool:
    value = question.default_value
    match question.type:
        case QuestionType.STRING:
            return isinstance(value, str)
        case QuestionType.ENUM:
            return isinstance(value, str) and value in (question.choices or [])
        case QuestionType.BOOLEAN:
            return isinstance(value, bool)
        case QuestionType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        case QuestionType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
    return False


ListSpec.model_rebuild()
