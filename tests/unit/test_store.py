"""Tests for the store engine."""

from __future__ import annotations

import pytest

from qaform.core.errors import (
    HostUnavailableError,
    InvalidPathError,
    SecretsDisabledError,
    StoreTemplateError,
    WriteDeniedError,
)
from qaform.core.ir import SecretsPolicy, StoreOp
from qaform.core.store import StoreContext, get_template_env, render_value

POLICY = SecretsPolicy(enabled=True, write_enabled=True, allow=["aws/*"])


def _ops(*ops: dict) -> list[StoreOp]:
    return [StoreOp.model_validate(op) for op in ops]


class TestRenderValue:
    VARS = {"answers": {"name": "Ada", "port": 8080, "tags": ["a"]}, "state": {}}

    def test_plain_values_unchanged(self) -> None:
        assert render_value("plain", self.VARS) == "plain"
        assert render_value(3, self.VARS) == 3
        assert render_value(None, self.VARS) is None

    def test_text_template(self) -> None:
        assert render_value("hello {{ answers.name }}!", self.VARS) == "hello Ada!"

    def test_single_placeholder_keeps_native_value(self) -> None:
        assert render_value("{{ answers.port }}", self.VARS) == 8080
        assert render_value(" {{ answers.tags }} ", self.VARS) == ["a"]

    def test_nested_structures(self) -> None:
        value = {"who": ["{{ answers.name }}", {"port": "{{ answers.port }}"}]}
        assert render_value(value, self.VARS) == {"who": ["Ada", {"port": 8080}]}

    def test_undefined_raises(self) -> None:
        from jinja2 import UndefinedError

        with pytest.raises(UndefinedError):
            render_value("{{ answers.missing }}", self.VARS)
        with pytest.raises(UndefinedError):
            render_value("x {{ answers.missing }}", self.VARS)

    def test_environment_is_shared(self) -> None:
        assert get_template_env() is get_template_env()


class TestStoreContext:
    def test_from_value_defaults(self) -> None:
        ctx = StoreContext.from_value({"answers": {"a": 1}, "state": "bogus"})
        assert ctx.to_value() == {"answers": {"a": 1}, "state": {}, "secrets": {}}
        assert StoreContext.from_value(None).to_value() == {
            "answers": {},
            "state": {},
            "secrets": {},
        }

    def test_from_value_copies(self) -> None:
        source = {"state": {"n": 1}}
        ctx = StoreContext.from_value(source)
        ctx.state["n"] = 2
        assert source == {"state": {"n": 1}}

    def test_apply_writes_and_templates(self) -> None:
        ctx = StoreContext.from_value({"answers": {"q1": "x"}})
        ctx.apply_ops(
            _ops(
                {"target": "state", "path": "/done", "value": True},
                {"target": "state", "path": "/copy", "value": "{{ answers.q1 }}"},
                {"target": "secrets", "path": "/aws/key", "value": "k-{{ answers.q1 }}"},
            ),
            POLICY,
            host_available=True,
        )
        assert ctx.state == {"done": True, "copy": "x"}
        assert ctx.secrets == {"aws": {"key": "k-x"}}

    def test_later_ops_see_earlier_writes(self) -> None:
        ctx = StoreContext()
        ctx.apply_ops(
            _ops(
                {"target": "state", "path": "/n", "value": 1},
                {"target": "state", "path": "/m", "value": "{{ state.n }}"},
            ),
            None,
            host_available=False,
        )
        assert ctx.state == {"n": 1, "m": 1}

    def test_root_replacement(self) -> None:
        ctx = StoreContext.from_value({"state": {"old": 1}})
        ctx.apply_ops(_ops({"target": "state", "path": "", "value": {"new": 2}}), None, False)
        assert ctx.state == {"new": 2}

    def test_empty_batch(self) -> None:
        ctx = StoreContext.from_value({"state": {"a": 1}})
        ctx.apply_ops([], None, False)
        assert ctx.state == {"a": 1}


class TestStoreFailures:
    def _apply(self, *ops: dict, policy=POLICY, host: bool = True) -> StoreContext:
        ctx = StoreContext.from_value({"answers": {"q1": "x"}, "state": {"keep": True}})
        before = ctx.to_value()
        with pytest.raises(Exception) as exc_info:
            ctx.apply_ops(_ops(*ops), policy, host)
        assert ctx.to_value() == before
        raise exc_info.value

    def test_denied_write_commits_nothing(self) -> None:
        with pytest.raises(WriteDeniedError) as exc_info:
            self._apply(
                {"target": "state", "path": "/written", "value": 1},
                {"target": "secrets", "path": "/other/key", "value": "v"},
            )
        assert exc_info.value.op_index == 1
        assert exc_info.value.path == "/other/key"
        assert exc_info.value.kind == "write_denied"

    def test_secrets_disabled(self) -> None:
        with pytest.raises(SecretsDisabledError):
            self._apply({"target": "secrets", "path": "/aws/key", "value": "v"}, policy=None)

    def test_host_unavailable(self) -> None:
        with pytest.raises(HostUnavailableError):
            self._apply({"target": "secrets", "path": "/aws/key", "value": "v"}, host=False)

    def test_writes_disabled_is_write_denied(self) -> None:
        policy = SecretsPolicy(enabled=True, write_enabled=False, allow=["aws/*"])
        with pytest.raises(WriteDeniedError):
            self._apply({"target": "secrets", "path": "/aws/key", "value": "v"}, policy=policy)

    def test_relative_path(self) -> None:
        with pytest.raises(InvalidPathError):
            self._apply({"target": "state", "path": "done", "value": 1})

    def test_path_through_scalar(self) -> None:
        with pytest.raises(InvalidPathError):
            self._apply({"target": "state", "path": "/keep/deeper", "value": 1})

    def test_root_must_be_object(self) -> None:
        with pytest.raises(InvalidPathError):
            self._apply({"target": "state", "path": "", "value": [1]})

    def test_template_error(self) -> None:
        with pytest.raises(StoreTemplateError) as exc_info:
            self._apply({"target": "state", "path": "/x", "value": "{{ answers.nope }}"})
        assert exc_info.value.reason.startswith("template error")

    def test_template_syntax_error(self) -> None:
        with pytest.raises(StoreTemplateError):
            self._apply({"target": "state", "path": "/x", "value": "{{ answers. }} tail"})

    def test_division_by_zero_commits_nothing(self) -> None:
        with pytest.raises(StoreTemplateError) as exc_info:
            self._apply(
                {"target": "state", "path": "/zero", "value": 0},
                {"target": "state", "path": "/ratio", "value": "{{ 10 / state.zero }}"},
            )
        assert exc_info.value.op_index == 1
        assert "ZeroDivisionError" in exc_info.value.reason

    def test_type_error_in_template(self) -> None:
        with pytest.raises(StoreTemplateError) as exc_info:
            self._apply({"target": "state", "path": "/x", "value": "{{ answers.q1 + 1 }}"})
        assert exc_info.value.path == "/x"
