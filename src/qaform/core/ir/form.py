"""
Form specification types for qaform IR.

This module contains the top-level FormSpec along with the policies that
shape navigation and secret handling, and cross-field validation rules.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .expressions import Condition
from .questions import QuestionSpec
from .store import StoreOp


class FormPresentation(BaseModel):
    """Presentation hints for a form."""

    intro: str | None = None
    theme: str | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class ProgressPolicy(BaseModel):
    """
    Navigation policy shared by the progress navigator and render payload.

    Attributes:
        skip_answered: Ask the first unanswered question instead of the first visible one
        autofill_defaults: Surface a question's default as its current value
        treat_default_as_answered: Count a question with a default as answered
    """

    skip_answered: bool = True
    autofill_defaults: bool = False
    treat_default_as_answered: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


class SecretsPolicy(BaseModel):
    """
    Allow/deny rules gating access to the secrets namespace.

    Patterns are ``/``-delimited globs where ``*`` matches one segment and
    ``**`` matches any number of segments. Deny always wins over allow.
    """

    enabled: bool = False
    read_enabled: bool = False
    write_enabled: bool = False
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


class CrossFieldValidation(BaseModel):
    """
    A rule spanning several questions.

    When ``condition`` evaluates to a definite false, one error per entry in
    ``fields`` is reported with ``message`` and ``code``.
    """

    id: str | None = None
    message: str
    fields: list[str] = Field(default_factory=list)
    condition: Condition
    code: str | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class FormSpec(BaseModel):
    """
    Top-level form definition.

    Question order is significant: it is the navigation order and the
    property order of the generated answer schema.
    """

    id: str = Field(min_length=1)
    title: str
    version: str
    description: str | None = None
    presentation: FormPresentation | None = None
    progress_policy: ProgressPolicy | None = None
    secrets_policy: SecretsPolicy | None = None
    store: list[StoreOp] = Field(default_factory=list)
    questions: list[QuestionSpec]
    validations: list[CrossFieldValidation] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def check_references(self) -> FormSpec:
        seen: set[str] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"duplicate question id '{question.id}'")
            seen.add(question.id)
        for validation in self.validations:
            unknown = [name for name in validation.fields if name not in seen]
            if unknown:
                label = validation.id or validation.message
                raise ValueError(
                    f"cross-field validation '{label}' references unknown "
                    f"questions: {', '.join(unknown)}"
                )
        return self

    def question(self, question_id: str) -> QuestionSpec | None:
        """Find a question by id."""
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    @property
    def effective_progress_policy(self) -> ProgressPolicy:
        return self.progress_policy or ProgressPolicy()

    def to_json_dict(self) -> dict:
        """Serialize using wire names, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
