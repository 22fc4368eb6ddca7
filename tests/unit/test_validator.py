"""Tests for answer validation."""

from __future__ import annotations

import pytest

from qaform.core.errors import ExpressionDepthError
from qaform.core.ir import ProgressPolicy, QuestionType
from qaform.core.validator import matches_type, validate


def _codes(result) -> list[str | None]:
    return [issue.code for issue in result.errors]


class TestMatchesType:
    @pytest.mark.parametrize(
        ("kind", "value", "expected"),
        [
            (QuestionType.STRING, "x", True),
            (QuestionType.STRING, 1, False),
            (QuestionType.BOOLEAN, False, True),
            (QuestionType.BOOLEAN, 0, False),
            (QuestionType.INTEGER, 2, True),
            (QuestionType.INTEGER, 2.0, False),
            (QuestionType.INTEGER, True, False),
            (QuestionType.NUMBER, 2.5, True),
            (QuestionType.NUMBER, 2, True),
            (QuestionType.NUMBER, True, False),
            (QuestionType.ENUM, "a", True),
            (QuestionType.LIST, [], True),
            (QuestionType.LIST, {}, False),
        ],
    )
    def test_matches(self, kind: QuestionType, value, expected: bool) -> None:
        assert matches_type(kind, value) is expected


class TestRequiredAndUnknown:
    def test_missing_required(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "string", "title": "Q1", "required": True},
            {"id": "q2", "type": "string", "title": "Q2"},
        )
        result = validate(spec, {})
        assert not result.valid
        assert result.missing_required == ["q1"]
        assert result.errors == []

    def test_null_counts_as_missing(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "string", "title": "Q1", "required": True})
        assert validate(spec, {"q1": None}).missing_required == ["q1"]

    def test_computed_required_is_not_missing(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "boolean", "title": "Q1", "required": True, "computed": "true"}
        )
        assert validate(spec, {}).valid

    def test_hidden_required_is_not_missing(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "boolean", "title": "Q1"},
            {
                "id": "q2",
                "type": "string",
                "title": "Q2",
                "required": True,
                "visible_if": "q1 == true",
            },
        )
        assert validate(spec, {"q1": False}).valid
        assert validate(spec, {"q1": True}).missing_required == ["q2"]

    def test_hidden_answer_is_not_checked(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "boolean", "title": "Q1"},
            {"id": "q2", "type": "integer", "title": "Q2", "visible_if": "q1 == true"},
        )
        assert validate(spec, {"q1": False, "q2": "not a number"}).valid

    def test_unknown_fields(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "string", "title": "Q1"})
        result = validate(spec, {"q1": "a", "extra": 1})
        assert not result.valid
        assert result.unknown_fields == ["extra"]

    def test_no_answers(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "string", "title": "Q1"})
        assert validate(spec, None).valid


class TestScalarChecks:
    def test_type_mismatch(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "string", "title": "Q1"})
        result = validate(spec, {"q1": True})
        assert len(result.errors) == 1
        issue = result.errors[0]
        assert issue.code == "type_mismatch"
        assert issue.question_id == "q1"
        assert issue.path == "/q1"

    def test_integer_rejects_float(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "integer", "title": "Q1"})
        assert _codes(validate(spec, {"q1": 2.0})) == ["type_mismatch"]
        assert validate(spec, {"q1": 2}).valid

    def test_pattern(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "string", "title": "Q1", "constraint": {"pattern": "^[a-z]+$"}}
        )
        assert validate(spec, {"q1": "abc"}).valid
        result = validate(spec, {"q1": "ABC"})
        assert _codes(result) == ["pattern_mismatch"]
        assert result.errors[0].message == "value does not match pattern"

    def test_invalid_pattern_is_ignored(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "string", "title": "Q1", "constraint": {"pattern": "(["}}
        )
        assert validate(spec, {"q1": "anything"}).valid

    def test_string_length(self, make_spec) -> None:
        spec = make_spec(
            {
                "id": "q1",
                "type": "string",
                "title": "Q1",
                "constraint": {"min_len": 2, "max_len": 4},
            }
        )
        assert _codes(validate(spec, {"q1": "a"})) == ["min_length"]
        assert _codes(validate(spec, {"q1": "abcde"})) == ["max_length"]
        assert validate(spec, {"q1": "abc"}).valid

    def test_numeric_bounds(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "number", "title": "Q1", "constraint": {"min": 1, "max": 10}}
        )
        below = validate(spec, {"q1": 0.5})
        assert _codes(below) == ["min"]
        assert below.errors[0].message == "value below minimum"
        assert _codes(validate(spec, {"q1": 11})) == ["max"]
        assert validate(spec, {"q1": 10}).valid

    def test_enum(self, make_spec) -> None:
        spec = make_spec({"id": "q1", "type": "enum", "title": "Q1", "choices": ["a", "b"]})
        result = validate(spec, {"q1": "c"})
        assert _codes(result) == ["enum_mismatch"]
        assert result.errors[0].message == "invalid enum option"
        assert _codes(validate(spec, {"q1": 1})) == ["type_mismatch"]

    def test_first_failure_only(self, make_spec) -> None:
        spec = make_spec(
            {
                "id": "q1",
                "type": "string",
                "title": "Q1",
                "constraint": {"pattern": "^a", "min_len": 5},
            }
        )
        assert _codes(validate(spec, {"q1": "b"})) == ["pattern_mismatch"]


class TestListChecks:
    PEOPLE = {
        "id": "people",
        "type": "list",
        "title": "People",
        "list": {
            "min_items": 1,
            "max_items": 2,
            "fields": [
                {"id": "name", "type": "string", "title": "Name", "required": True},
                {"id": "age", "type": "integer", "title": "Age", "constraint": {"min": 0}},
            ],
        },
    }

    def test_valid_list(self, make_spec) -> None:
        spec = make_spec(self.PEOPLE)
        assert validate(spec, {"people": [{"name": "Ada", "age": 36}]}).valid

    def test_not_a_list(self, make_spec) -> None:
        spec = make_spec(self.PEOPLE)
        assert _codes(validate(spec, {"people": {"name": "Ada"}})) == ["type_mismatch"]

    def test_item_count(self, make_spec) -> None:
        spec = make_spec(self.PEOPLE)
        assert _codes(validate(spec, {"people": []})) == ["min_items"]
        too_many = [{"name": "a"}, {"name": "b"}, {"name": "c"}]
        assert _codes(validate(spec, {"people": too_many})) == ["max_items"]

    def test_item_errors_carry_paths(self, make_spec) -> None:
        spec = make_spec(self.PEOPLE)
        result = validate(spec, {"people": [{"age": -1}, "bob"]})
        assert [(issue.path, issue.code) for issue in result.errors] == [
            ("/people/0/name", "required"),
            ("/people/0/age", "min"),
            ("/people/1", "type_mismatch"),
        ]
        assert {issue.question_id for issue in result.errors} == {"people"}

    def test_unknown_item_keys_are_ignored(self, make_spec) -> None:
        spec = make_spec(self.PEOPLE)
        assert validate(spec, {"people": [{"name": "Ada", "nickname": "A"}]}).valid


class TestCrossField:
    QUESTIONS = (
        {"id": "start", "type": "integer", "title": "Start"},
        {"id": "end", "type": "integer", "title": "End"},
    )

    def test_false_condition_reports_each_field(self, make_spec) -> None:
        spec = make_spec(
            *self.QUESTIONS,
            validations=[
                {
                    "message": "end must follow start",
                    "fields": ["start", "end"],
                    "condition": "end > start",
                    "code": "range",
                }
            ],
        )
        result = validate(spec, {"start": 5, "end": 1})
        assert [(i.question_id, i.path, i.code) for i in result.errors] == [
            ("start", "/start", "range"),
            ("end", "/end", "range"),
        ]
        assert result.errors[0].message == "end must follow start"

    def test_true_or_indeterminate_passes(self, make_spec) -> None:
        spec = make_spec(
            *self.QUESTIONS,
            validations=[{"message": "m", "fields": ["end"], "condition": "end > start"}],
        )
        assert validate(spec, {"start": 1, "end": 5}).valid
        assert validate(spec, {"start": 1}).valid

    def test_default_code_and_no_fields(self, make_spec) -> None:
        spec = make_spec(
            *self.QUESTIONS,
            validations=[{"message": "never", "condition": "false"}],
        )
        result = validate(spec, {})
        assert len(result.errors) == 1
        assert result.errors[0].code == "cross_field"
        assert result.errors[0].question_id is None

    def test_rule_on_hidden_fields_is_skipped(self, make_spec) -> None:
        spec = make_spec(
            {"id": "on", "type": "boolean", "title": "On"},
            {"id": "n", "type": "integer", "title": "N", "visible_if": "on == true"},
            validations=[{"message": "m", "fields": ["n"], "condition": "false"}],
        )
        assert validate(spec, {"on": False}).valid
        assert not validate(spec, {"on": True}).valid

    def test_rules_see_computed_values(self, make_spec) -> None:
        spec = make_spec(
            {"id": "q1", "type": "integer", "title": "Q1"},
            {
                "id": "copy",
                "type": "integer",
                "title": "Copy",
                "computed": {"op": "answer", "path": "q1"},
            },
            validations=[{"message": "m", "fields": ["copy"], "condition": "copy == 3"}],
        )
        assert validate(spec, {"q1": 3}).valid
        assert not validate(spec, {"q1": 4}).valid

    def test_cross_field_honours_depth_bound(self, make_spec) -> None:
        spec = make_spec(
            *self.QUESTIONS,
            validations=[{"message": "m", "condition": "not (not (end > start))"}],
        )
        assert validate(spec, {"start": 1, "end": 5}).valid
        with pytest.raises(ExpressionDepthError):
            validate(spec, {"start": 1, "end": 5}, max_depth=2)


class TestDefaultsAsAnswers:
    QUESTIONS = (
        {"id": "a", "type": "string", "title": "A", "required": True},
        {"id": "b", "type": "string", "title": "B", "required": True, "default_value": "x"},
    )

    def test_default_satisfies_required_under_policy(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS, progress_policy={"treat_default_as_answered": True})
        assert validate(spec, {"a": "1"}).valid

    def test_default_alone_is_not_an_answer(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        assert validate(spec, {"a": "1"}).missing_required == ["b"]

    def test_explicit_policy_wins(self, make_spec) -> None:
        spec = make_spec(*self.QUESTIONS)
        policy = ProgressPolicy(treat_default_as_answered=True)
        assert validate(spec, {"a": "1"}, policy=policy).valid
