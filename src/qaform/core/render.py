"""
Render payload builder and formatters.

``build_render_payload`` gathers visibility, navigation and the answer
schema into one RenderPayload. The formatters only read that payload:

- ``render_text``: human-readable summary
- ``render_json_ui``: JSON structure for custom front ends
- ``render_card``: Adaptive Card v1.3
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .ir import (
    MAX_EXPRESSION_DEPTH,
    FormSpec,
    QuestionType,
    RenderPayload,
    RenderProgress,
    RenderQuestion,
    RenderStatus,
)
from .progress import ProgressContext, navigate
from .schema import answers_schema
from .visibility import VisibilityMode, resolve_visibility

ADAPTIVE_CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
ADAPTIVE_CARD_VERSION = "1.3"
ALL_ANSWERED = "All visible questions are answered."


def build_render_payload(
    spec: FormSpec,
    context: Mapping[str, Any] | None,
    answers: Mapping[str, Any] | None,
    *,
    mode: VisibilityMode = VisibilityMode.VISIBLE,
    max_depth: int = MAX_EXPRESSION_DEPTH,
) -> RenderPayload:
    """
    Build the renderer payload from the form, caller context and answers.

    With ``autofill_defaults`` the next question's default is surfaced as
    its current value when it has no answer yet.
    """
    answers = dict(answers or {})
    visibility = resolve_visibility(spec, answers, mode, max_depth=max_depth)
    progress = ProgressContext(answers, context)
    result = navigate(spec, progress, visibility)
    policy = progress.policy_for(spec)

    questions: list[RenderQuestion] = []
    for question in spec.questions:
        current = answers.get(question.id)
        if (
            current is None
            and policy.autofill_defaults
            and question.id == result.next_question_id
        ):
            current = question.default_value
        questions.append(
            RenderQuestion(
                id=question.id,
                title=question.title,
                description=question.description,
                kind=question.type,
                required=question.required,
                default=question.default_value,
                secret=question.secret,
                visible=visibility.get(question.id, True),
                current_value=current,
                choices=question.choices,
                list_fields=(
                    [f.id for f in question.list_spec.fields] if question.list_spec else None
                ),
            )
        )

    help_text = (spec.presentation.intro if spec.presentation else None) or spec.description

    return RenderPayload(
        form_id=spec.id,
        form_title=spec.title,
        form_version=spec.version,
        status=RenderStatus.COMPLETE if result.complete else RenderStatus.NEED_INPUT,
        next_question_id=result.next_question_id,
        progress=RenderProgress(answered=result.answered, total=result.total),
        help=help_text,
        questions=questions,
        answer_schema=answers_schema(spec, visibility),
    )


def display_value(value: Any) -> str:
    """Plain text for a JSON value: strings unquoted, ``true``/``false`` for booleans."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _shown_value(question: RenderQuestion) -> str:
    if question.secret:
        return "********"
    return display_value(question.current_value)


# =============================================================================
# Text
# =============================================================================


def render_text(payload: RenderPayload) -> str:
    """Render the payload as human-friendly text."""
    lines = [
        f"Form: {payload.form_title} ({payload.form_id})",
        f"Status: {payload.status} ({payload.progress.answered}/{payload.progress.total})",
    ]
    if payload.help:
        lines.append(f"Help: {payload.help}")

    if payload.next_question_id is not None:
        lines.append(f"Next question: {payload.next_question_id}")
        question = payload.question(payload.next_question_id)
        if question is not None:
            lines.append(f"  Title: {question.title}")
            if question.description:
                lines.append(f"  Description: {question.description}")
            if question.required:
                lines.append("  Required: yes")
            if question.default is not None:
                lines.append(f"  Default: {display_value(question.default)}")
            if question.current_value is not None:
                lines.append(f"  Current value: {_shown_value(question)}")
    else:
        lines.append(ALL_ANSWERED)

    lines.append("Visible questions:")
    for question in payload.visible_questions:
        entry = f" - {question.id} ({question.title})"
        if question.required:
            entry += " [required]"
        if question.current_value is not None:
            entry += f" = {_shown_value(question)}"
        lines.append(entry)

    return "\n".join(lines)


# =============================================================================
# JSON UI
# =============================================================================


def render_json_ui(payload: RenderPayload) -> dict[str, Any]:
    """Render the payload as a JSON-friendly structure."""
    questions = []
    for question in payload.questions:
        entry: dict[str, Any] = {
            "id": question.id,
            "title": question.title,
            "description": question.description,
            "type": str(question.kind),
            "required": question.required,
        }
        if question.default is not None:
            entry["default"] = question.default
        if question.current_value is not None:
            entry["current_value"] = question.current_value
        if question.choices is not None:
            entry["choices"] = list(question.choices)
        if question.list_fields is not None:
            entry["fields"] = list(question.list_fields)
        entry["visible"] = question.visible
        entry["secret"] = question.secret
        questions.append(entry)

    return {
        "form_id": payload.form_id,
        "form_title": payload.form_title,
        "form_version": payload.form_version,
        "status": str(payload.status),
        "next_question_id": payload.next_question_id,
        "progress": {
            "answered": payload.progress.answered,
            "total": payload.progress.total,
        },
        "help": payload.help,
        "questions": questions,
        "schema": payload.answer_schema,
    }


# =============================================================================
# Adaptive Card
# =============================================================================


def render_card(payload: RenderPayload) -> dict[str, Any]:
    """Render the payload as an Adaptive Card v1.3."""
    body: list[dict[str, Any]] = [
        {
            "type": "TextBlock",
            "text": payload.form_title,
            "weight": "Bolder",
            "size": "Large",
            "wrap": True,
        }
    ]
    if payload.help:
        body.append({"type": "TextBlock", "text": payload.help, "wrap": True})

    body.append(
        {
            "type": "FactSet",
            "facts": [
                {"title": "Answered", "value": str(payload.progress.answered)},
                {"title": "Total", "value": str(payload.progress.total)},
            ],
        }
    )

    actions: list[dict[str, Any]] = []
    question = (
        payload.question(payload.next_question_id) if payload.next_question_id else None
    )
    if question is not None:
        items: list[dict[str, Any]] = [
            {"type": "TextBlock", "text": question.title, "weight": "Bolder", "wrap": True}
        ]
        if question.description:
            items.append(
                {
                    "type": "TextBlock",
                    "text": question.description,
                    "wrap": True,
                    "spacing": "Small",
                }
            )
        items.append(_card_input(question))
        body.append({"type": "Container", "items": items})
        actions.append(
            {
                "type": "Action.Submit",
                "title": "Next ➡️",
                "data": {
                    "qa": {
                        "formId": payload.form_id,
                        "mode": "patch",
                        "questionId": question.id,
                        "field": "answer",
                    }
                },
            }
        )
    elif payload.next_question_id is None:
        body.append({"type": "TextBlock", "text": ALL_ANSWERED, "wrap": True})

    return {
        "$schema": ADAPTIVE_CARD_SCHEMA,
        "type": "AdaptiveCard",
        "version": ADAPTIVE_CARD_VERSION,
        "body": body,
        "actions": actions,
    }


def _card_input(question: RenderQuestion) -> dict[str, Any]:
    value = question.current_value

    if question.kind == QuestionType.BOOLEAN:
        element: dict[str, Any] = {
            "type": "Input.Toggle",
            "id": question.id,
            "title": question.title,
            "isRequired": question.required,
            "valueOn": "true",
            "valueOff": "false",
        }
        if value is not None:
            element["value"] = "true" if value is True else "false"
        return element

    if question.kind == QuestionType.ENUM:
        element = {
            "type": "Input.ChoiceSet",
            "id": question.id,
            "style": "compact",
            "isRequired": question.required,
            "choices": [{"title": c, "value": c} for c in question.choices or []],
        }
        if value is not None:
            element["value"] = display_value(value)
        return element

    element = {"type": "Input.Text", "id": question.id, "isRequired": question.required}
    if question.kind == QuestionType.LIST:
        element["isMultiline"] = True
        element["placeholder"] = "JSON array of entries"
    if value is not None:
        element["value"] = display_value(value)
    return element
