"""
Answer validation for qaform forms.

Only visible questions are checked. A scalar question reports at most one error,
checked in order: type, constraints, enum membership. List questions also
check their item count and every field of every item.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from .expression_lang import answer_context, evaluate
from .ir import (
    MAX_EXPRESSION_DEPTH,
    Constraint,
    CrossFieldValidation,
    FormSpec,
    ProgressPolicy,
    QuestionSpec,
    QuestionType,
    ValidationIssue,
    ValidationResult,
)
from .progress import is_answered, resolve_computed
from .visibility import VisibilityMap, VisibilityMode, resolve_visibility

logger = logging.getLogger(__name__)

DEFAULT_CROSS_FIELD_CODE = "cross_field"


def validate(
    spec: FormSpec,
    answers: Mapping[str, Any] | None,
    *,
    mode: VisibilityMode = VisibilityMode.VISIBLE,
    max_depth: int = MAX_EXPRESSION_DEPTH,
    policy: ProgressPolicy | None = None,
) -> ValidationResult:
    """
    Validate answers against a form.

    Args:
        spec: Form specification
        answers: Answer mapping (question id -> value)
        mode: Treatment of indeterminate visibility conditions
        max_depth: Expression nesting bound
        policy: Progress policy deciding what counts as answered;
            defaults to the form's own policy

    Returns:
        ValidationResult; ``valid`` is true iff there are no errors, no
        missing required questions and no unknown fields.
    """
    answers = dict(answers or {})
    policy = policy or spec.effective_progress_policy
    visibility = resolve_visibility(spec, answers, mode, max_depth=max_depth)

    errors: list[ValidationIssue] = []
    missing_required: list[str] = []

    for question in spec.questions:
        if not visibility.get(question.id, True):
            continue

        value = answers.get(question.id)
        if value is None:
            if question.required and not is_answered(question, answers, policy):
                missing_required.append(question.id)
            continue

        errors.extend(_validate_question(question, value, f"/{question.id}"))

    errors.extend(_cross_field_errors(spec, answers, visibility, max_depth))

    known = set(spec.question_ids)
    unknown_fields = [key for key in answers if key not in known]

    return ValidationResult.build(errors, missing_required, unknown_fields)


# =============================================================================
# Per-question checks
# =============================================================================


def _validate_question(question: QuestionSpec, value: Any, path: str) -> list[ValidationIssue]:
    if question.type == QuestionType.LIST:
        return _validate_list(question, value, path)
    issue = _validate_value(question, value, path, question.id)
    return [issue] if issue else []


def _validate_value(
    question: QuestionSpec, value: Any, path: str, owner: str
) -> ValidationIssue | None:
    if not matches_type(question.type, value):
        return _issue(owner, path, "type mismatch", "type_mismatch")

    if question.constraint is not None:
        issue = _enforce_constraint(question.constraint, value, path, owner)
        if issue is not None:
            return issue

    if question.type == QuestionType.ENUM and value not in (question.choices or []):
        return _issue(owner, path, "invalid enum option", "enum_mismatch")

    return None


def matches_type(kind: QuestionType, value: Any) -> bool:
    """Whether a JSON value has the shape a question type expects."""
    match kind:
        case QuestionType.STRING | QuestionType.ENUM:
            return isinstance(value, str)
        case QuestionType.BOOLEAN:
            return isinstance(value, bool)
        case QuestionType.INTEGER:
            # Whole JSON integers only: 2.0 is a float and is rejected
            return isinstance(value, int) and not isinstance(value, bool)
        case QuestionType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case QuestionType.LIST:
            return isinstance(value, list)
    return False


def _enforce_constraint(
    constraint: Constraint, value: Any, path: str, owner: str
) -> ValidationIssue | None:
    if isinstance(value, str):
        if constraint.pattern is not None:
            regex = _compile(constraint.pattern)
            if regex is not None and regex.search(value) is None:
                return _issue(owner, path, "value does not match pattern", "pattern_mismatch")
        if constraint.min_len is not None and len(value) < constraint.min_len:
            return _issue(owner, path, "string shorter than min length", "min_length")
        if constraint.max_len is not None and len(value) > constraint.max_len:
            return _issue(owner, path, "string longer than max length", "max_length")

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if constraint.min is not None and value < constraint.min:
            return _issue(owner, path, "value below minimum", "min")
        if constraint.max is not None and value > constraint.max:
            return _issue(owner, path, "value above maximum", "max")

    return None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Ignoring invalid constraint pattern %r: %s", pattern, e)
        return None


def _validate_list(question: QuestionSpec, value: Any, path: str) -> list[ValidationIssue]:
    if not isinstance(value, list):
        return [_issue(question.id, path, "type mismatch", "type_mismatch")]

    list_spec = question.list_spec
    assert list_spec is not None

    if list_spec.min_items is not None and len(value) < list_spec.min_items:
        return [_issue(question.id, path, "too few items", "min_items")]
    if list_spec.max_items is not None and len(value) > list_spec.max_items:
        return [_issue(question.id, path, "too many items", "max_items")]

    issues: list[ValidationIssue] = []
    for index, item in enumerate(value):
        item_path = f"{path}/{index}"
        if not isinstance(item, dict):
            issues.append(
                _issue(question.id, item_path, "list item must be an object", "type_mismatch")
            )
            continue
        for item_field in list_spec.fields:
            field_path = f"{item_path}/{item_field.id}"
            field_value = item.get(item_field.id)
            if field_value is None:
                if item_field.required:
                    issues.append(
                        _issue(question.id, field_path, "required field missing", "required")
                    )
                continue
            issue = _validate_value(item_field, field_value, field_path, question.id)
            if issue is not None:
                issues.append(issue)
    return issues


# =============================================================================
# Cross-field rules
# =============================================================================


def _cross_field_errors(
    spec: FormSpec, answers: dict[str, Any], visibility: VisibilityMap, max_depth: int
) -> list[ValidationIssue]:
    if not spec.validations:
        return []

    context = answer_context(resolve_computed(spec, answers, max_depth=max_depth))
    issues: list[ValidationIssue] = []
    for rule in spec.validations:
        if rule.fields and not any(visibility.get(name, True) for name in rule.fields):
            logger.debug("Skipping cross-field rule %s: no visible fields", rule.id or rule.message)
            continue
        if evaluate(rule.condition, context, max_depth=max_depth) is False:
            issues.extend(_rule_issues(rule))
    return issues


def _rule_issues(rule: CrossFieldValidation) -> list[ValidationIssue]:
    code = rule.code or DEFAULT_CROSS_FIELD_CODE
    if not rule.fields:
        return [ValidationIssue(message=rule.message, code=code)]
    return [_issue(name, f"/{name}", rule.message, code) for name in rule.fields]


def _issue(question_id: str, path: str, message: str, code: str) -> ValidationIssue:
    return ValidationIssue(question_id=question_id, path=path, message=message, code=code)
