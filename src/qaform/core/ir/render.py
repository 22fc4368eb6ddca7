"""
Render payload types for qaform IR.

The render payload is the format-agnostic snapshot consumed by the text,
JSON-UI, and Adaptive Card formatters.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .questions import QuestionType


class RenderStatus(StrEnum):
    """Status labels returned by the renderers."""

    NEED_INPUT = "need_input"
    COMPLETE = "complete"
    ERROR = "error"


class RenderProgress(BaseModel):
    """Progress counters exposed to renderers."""

    answered: int
    total: int

    model_config = ConfigDict(frozen=True)


class RenderQuestion(BaseModel):
    """Describes a single question for render outputs."""

    id: str
    title: str
    description: str | None = None
    kind: QuestionType
    required: bool
    default: Any = None
    secret: bool = False
    visible: bool = True
    current_value: Any = None
    choices: list[str] | None = None
    list_fields: list[str] | None = None

    model_config = ConfigDict(frozen=True)


class RenderPayload(BaseModel):
    """Collected payload used by every formatter."""

    form_id: str
    form_title: str
    form_version: str
    status: RenderStatus
    next_question_id: str | None
    progress: RenderProgress
    help: str | None = None
    questions: list[RenderQuestion]
    answer_schema: dict[str, Any]

    model_config = ConfigDict(frozen=True)

    def question(self, question_id: str) -> RenderQuestion | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @property
    def visible_questions(self) -> list[RenderQuestion]:
        return [q for q in self.questions if q.visible]
