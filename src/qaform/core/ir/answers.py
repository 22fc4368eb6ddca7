"""
Answer and validation result types for qaform IR.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AnswerMeta(BaseModel):
    """Optional bookkeeping attached to an answer set."""

    created_at: datetime | None = None
    updated_at: datetime | None = None
    source: str | None = None

    model_config = ConfigDict(frozen=True)


class AnswerSet(BaseModel):
    """
    Answers collected for one form.

    The mapping is never edited in place; ``replace_answers`` produces a new
    AnswerSet carrying a whole new mapping.
    """

    form_id: str
    spec_version: str
    answers: dict[str, Any] = Field(default_factory=dict)
    meta: AnswerMeta | None = None

    model_config = ConfigDict(frozen=True)

    def replace_answers(self, answers: dict[str, Any]) -> AnswerSet:
        return self.model_copy(update={"answers": dict(answers)})


class ValidationIssue(BaseModel):
    """A single validation failure."""

    question_id: str | None = None
    path: str | None = None
    message: str
    code: str | None = None

    model_config = ConfigDict(frozen=True)


class ValidationResult(BaseModel):
    """Outcome of validating an answer set against a form."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    missing_required: list[str] = Field(default_factory=list)
    unknown_fields: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def build(
        cls,
        errors: list[ValidationIssue],
        missing_required: list[str],
        unknown_fields: list[str],
    ) -> ValidationResult:
        return cls(
            valid=not errors and not missing_required and not unknown_fields,
            errors=errors,
            missing_required=missing_required,
            unknown_fields=unknown_fields,
        )
