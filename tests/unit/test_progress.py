"""Tests for progress navigation."""

from __future__ import annotations

import pytest

from qaform.core.errors import ExpressionDepthError
from qaform.core.ir import ProgressPolicy
from qaform.core.progress import (
    ProgressContext,
    fill_defaults,
    navigate,
    next_question,
    resolve_computed,
)
from qaform.core.visibility import resolve_visibility

TWO_REQUIRED = (
    {"id": "q1", "type": "string", "title": "Q1", "required": True},
    {"id": "q2", "type": "string", "title": "Q2", "required": True},
)


def _navigate(spec, answers, context=None):
    visibility = resolve_visibility(spec, answers)
    return navigate(spec, ProgressContext(answers, context), visibility)


class TestNextQuestion:
    def test_first_unanswered(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED, progress_policy={"skip_answered": True})
        result = _navigate(spec, {"q1": "test"})
        assert result.next_question_id == "q2"
        assert result.answered == 1
        assert result.total == 2
        assert result.status == "need_input"

    def test_complete(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED)
        result = _navigate(spec, {"q1": "a", "q2": "b"})
        assert result.next_question_id is None
        assert result.complete
        assert result.to_dict() == {
            "status": "complete",
            "next_question_id": None,
            "progress": {"answered": 2, "total": 2},
        }

    def test_null_answer_is_unanswered(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED)
        assert _navigate(spec, {"q1": None, "q2": "b"}).next_question_id == "q1"

    def test_without_skip_answered_returns_first_visible(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED, progress_policy={"skip_answered": False})
        assert _navigate(spec, {"q1": "a"}).next_question_id == "q1"
        assert _navigate(spec, {"q1": "a", "q2": "b"}).next_question_id is None

    def test_hidden_questions_are_skipped_and_not_counted(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "boolean", "title": "Q1"},
            {"id": "q2", "type": "string", "title": "Q2", "visible_if": "q1 == true"},
        )
        result = _navigate(spec, {"q1": False})
        assert result.next_question_id is None
        assert result.total == 1

    def test_optional_questions_are_still_asked(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "string", "title": "Q1"})
        assert _navigate(spec, {}).next_question_id == "q1"


class TestDefaultsAndComputed:
    DEFAULTED = ({"id": "q1", "type": "string", "title": "Q1", "default_value": "x"},)

    def test_default_does_not_answer_by_default(self, make_spec) -> None:
        spec = make_spec(*self.DEFAULTED)
        assert _navigate(spec, {}).next_question_id == "q1"

    def test_treat_default_as_answered(self, make_spec) -> None:
        spec = make_spec(*self.DEFAULTED, progress_policy={"treat_default_as_answered": True})
        result = _navigate(spec, {})
        assert result.next_question_id is None
        assert result.answered == 1

    def test_autofill_defaults_does_not_answer(self, make_spec) -> None:
        spec = make_spec(*self.DEFAULTED, progress_policy={"autofill_defaults": True})
        assert _navigate(spec, {}).next_question_id == "q1"

    def test_computed_question_is_answered(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "integer", "title": "Q1"},
            {
                "id": "double",
                "type": "integer",
                "title": "Double",
                "computed": {"op": "answer", "path": "q1"},
            },
        )
        result = _navigate(spec, {"q1": 2})
        assert result.next_question_id is None
        assert result.answered == 2

    def test_context_policy_overrides_spec(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED, progress_policy={"skip_answered": True})
        context = {"progress_policy": {"skip_answered": False}}
        assert _navigate(spec, {"q1": "a"}, context).next_question_id == "q1"

    def test_invalid_context_policy_is_ignored(self, make_spec) -> None:
        spec = make_spec(*TWO_REQUIRED)
        context = {"progress_policy": {"skip_answered": "sometimes"}}
        assert _navigate(spec, {"q1": "a"}, context).next_question_id == "q2"


class TestResolveComputed:
    QUESTIONS = (
        {"id": "q1", "type": "string", "title": "Q1"},
        {
            "id": "copy",
            "type": "string",
            "title": "Copy",
            "computed": {"op": "answer", "path": "q1"},
        },
        {
            "id": "flag",
            "type": "boolean",
            "title": "Flag",
            "computed": "q1 == 'yes'",
            "computed_overridable": True,
        },
    )

    def test_fills_values(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        assert resolve_computed(spec, {"q1": "yes"}) == {"q1": "yes", "copy": "yes", "flag": True}

    def test_override_is_kept(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        assert resolve_computed(spec, {"q1": "yes", "flag": False})["flag"] is False

    def test_non_overridable_value_is_recomputed(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        assert resolve_computed(spec, {"q1": "a", "copy": "b"})["copy"] == "a"

    def test_indeterminate_leaves_answer_absent(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        assert resolve_computed(spec, {}) == {}

    def test_next_question_uses_policy(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        visibility = resolve_visibility(spec, {})
        assert next_question(spec, ProgressContext({}), visibility) == "q1"

    def test_depth_bound_applies(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        with pytest.raises(ExpressionDepthError):
            resolve_computed(spec, {"q1": "yes"}, max_depth=1)


class TestFillDefaults:
    QUESTIONS = (
        {"id": "a", "type": "string", "title": "A", "default_value": "x"},
        {
            "id": "b",
            "type": "integer",
            "title": "B",
            "default_value": 3,
            "visible_if": "c == true",
        },
        {"id": "c", "type": "boolean", "title": "C"},
    )

    def test_fills_visible_unanswered(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        policy = ProgressPolicy(treat_default_as_answered=True)
        answers = {"c": False}
        visibility = resolve_visibility(spec, answers)
        assert fill_defaults(spec, answers, policy, visibility) == {"a": "x", "c": False}

    def test_explicit_answers_are_kept(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        policy = ProgressPolicy(treat_default_as_answered=True)
        answers = {"a": "y", "c": True}
        visibility = resolve_visibility(spec, answers)
        assert fill_defaults(spec, answers, policy, visibility) == {"a": "y", "b": 3, "c": True}

    def test_off_without_policy(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        visibility = resolve_visibility(spec, {})
        assert fill_defaults(spec, {}, ProgressPolicy(), visibility) == {}
