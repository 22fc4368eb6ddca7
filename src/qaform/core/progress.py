"""
Progress navigation: which question to ask next, and how far along we are.

"Answered" has one definition shared by navigation, the render payload and
the validator's required check:

- the answer is present and not null, or
- ``treat_default_as_answered`` is on and the question has a default, or
- the question is computed and not overridden by an explicit answer.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .expression_lang import MISSING, answer_context, evaluate_value
from .ir import MAX_EXPRESSION_DEPTH, FormSpec, ProgressPolicy, QuestionSpec
from .visibility import VisibilityMap

logger = logging.getLogger(__name__)


def has_answer(answers: Mapping[str, Any], question_id: str) -> bool:
    """A present, non-null answer."""
    return answers.get(question_id) is not None


def is_overridden(question: QuestionSpec, answers: Mapping[str, Any]) -> bool:
    """A computed question whose value was supplied explicitly."""
    return question.computed_overridable and has_answer(answers, question.id)


def is_auto_satisfied(question: QuestionSpec, answers: Mapping[str, Any]) -> bool:
    """A computed question the engine fills in itself."""
    return question.is_computed and not is_overridden(question, answers)


def is_answered(
    question: QuestionSpec, answers: Mapping[str, Any], policy: ProgressPolicy
) -> bool:
    """Whether a question counts as answered under ``policy``."""
    if has_answer(answers, question.id):
        return True
    if policy.treat_default_as_answered and question.has_default:
        return True
    return is_auto_satisfied(question, answers)


class ProgressContext:
    """
    Answers plus the progress policy in force for one navigation call.

    The caller context may carry a ``progress_policy`` object that takes
    precedence over the policy declared by the form.
    """

    def __init__(self, answers: Mapping[str, Any] | None, context: Mapping[str, Any] | None = None):
        self.answers: dict[str, Any] = dict(answers or {})
        self.policy_override = _policy_from_context(context or {})

    def policy_for(self, spec: FormSpec) -> ProgressPolicy:
        return self.policy_override or spec.effective_progress_policy

    def is_answered(self, question: QuestionSpec, policy: ProgressPolicy) -> bool:
        return is_answered(question, self.answers, policy)

    def answered_count(self, spec: FormSpec, visibility: VisibilityMap) -> int:
        """Number of visible questions that count as answered."""
        policy = self.policy_for(spec)
        return sum(
            1
            for question in spec.questions
            if visibility.get(question.id, True) and self.is_answered(question, policy)
        )


def _policy_from_context(context: Mapping[str, Any]) -> ProgressPolicy | None:
    raw = context.get("progress_policy")
    if raw is None:
        return None
    try:
        return ProgressPolicy.model_validate(raw)
    except ValidationError as e:
        logger.warning("Ignoring invalid progress_policy in context: %s", e)
        return None


def next_question(
    spec: FormSpec,
    progress: ProgressContext,
    visibility: VisibilityMap,
) -> str | None:
    """
    Pick the next question to ask.

    With ``skip_answered`` this is the first visible unanswered question.
    Without it, the first visible question is returned for as long as any
    visible question is unanswered. ``None`` means the form is complete.
    """
    policy = progress.policy_for(spec)
    visible = [q for q in spec.questions if visibility.get(q.id, True)]
    pending = [q for q in visible if not progress.is_answered(q, policy)]

    if not pending:
        logger.debug("All %d visible questions of %s are answered", len(visible), spec.id)
        return None
    if policy.skip_answered:
        return pending[0].id
    return visible[0].id


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of a navigation call."""

    next_question_id: str | None
    answered: int
    total: int

    @property
    def complete(self) -> bool:
        return self.next_question_id is None

    @property
    def status(self) -> str:
        return "complete" if self.complete else "need_input"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "next_question_id": self.next_question_id,
            "progress": {"answered": self.answered, "total": self.total},
        }


def navigate(
    spec: FormSpec,
    progress: ProgressContext,
    visibility: VisibilityMap,
) -> NavigationResult:
    """Next question plus answered/total counters over visible questions."""
    return NavigationResult(
        next_question_id=next_question(spec, progress, visibility),
        answered=progress.answered_count(spec, visibility),
        total=sum(1 for visible in visibility.values() if visible),
    )


def resolve_computed(
    spec: FormSpec,
    answers: Mapping[str, Any],
    *,
    max_depth: int = MAX_EXPRESSION_DEPTH,
) -> dict[str, Any]:
    """
    Return ``answers`` with computed values filled in.

    Computed questions are evaluated in spec order against the answers
    accumulated so far, so a computed value may depend on an earlier one.
    Overridden questions keep their explicit answer; expressions that cannot
    be evaluated leave the answer absent.
    """
    resolved = dict(answers)
    for question in spec.questions:
        if question.computed is None or is_overridden(question, resolved):
            continue
        value = evaluate_value(
            question.computed, answer_context(resolved), max_depth=max_depth
        )
        if value is MISSING:
            logger.debug("Computed value for %s is indeterminate", question.id)
            resolved.pop(question.id, None)
            continue
        resolved[question.id] = value
    return resolved


def fill_defaults(
    spec: FormSpec,
    answers: Mapping[str, Any],
    policy: ProgressPolicy,
    visibility: VisibilityMap,
) -> dict[str, Any]:
    """
    Return ``answers`` with defaults written in for visible unanswered questions.

    Only applies when ``treat_default_as_answered`` is on, so that a
    submission stores the values navigation already counted as answers.
    """
    filled = dict(answers)
    if not policy.treat_default_as_answered:
        return filled
    for question in spec.questions:
        if not visibility.get(question.id, True) or has_answer(filled, question.id):
            continue
        if question.has_default:
            filled[question.id] = question.default_value
    return filled
