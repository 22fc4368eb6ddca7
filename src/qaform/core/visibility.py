"""
Visibility resolution for form questions.

A question without ``visible_if`` is always visible. Otherwise its condition
is evaluated against the current answers; the visibility mode decides what
an indeterminate result means.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from .errors import VisibilityError
from .expression_lang import answer_context, evaluate
from .ir import MAX_EXPRESSION_DEPTH, FormSpec

logger = logging.getLogger(__name__)

VisibilityMap = dict[str, bool]


class VisibilityMode(StrEnum):
    """How an indeterminate ``visible_if`` is treated."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    ERROR = "error"


def resolve_visibility(
    spec: FormSpec,
    answers: Mapping[str, Any] | None,
    mode: VisibilityMode = VisibilityMode.VISIBLE,
    *,
    max_depth: int = MAX_EXPRESSION_DEPTH,
) -> VisibilityMap:
    """
    Compute visibility for every question of a form.

    Args:
        spec: Form specification
        answers: Current answers (may be empty)
        mode: Treatment of indeterminate conditions
        max_depth: Expression nesting bound passed to the evaluator

    Returns:
        Mapping with exactly one entry per question id.

    Raises:
        VisibilityError: In ``error`` mode, for the first indeterminate condition.
    """
    mode = VisibilityMode(mode)
    context = answer_context(answers)
    visibility: VisibilityMap = {}

    for question in spec.questions:
        if question.visible_if is None:
            visibility[question.id] = True
            continue

        result = evaluate(question.visible_if, context, max_depth=max_depth)
        if result is None:
            if mode == VisibilityMode.ERROR:
                raise VisibilityError(question.id)
            result = mode == VisibilityMode.VISIBLE
            logger.debug(
                "Visibility of %s is indeterminate, falling back to %s (%s mode)",
                question.id,
                result,
                mode,
            )
        visibility[question.id] = result

    return visibility
