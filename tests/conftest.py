"""Shared pytest fixtures for qaform tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from qaform.core.ir import FormSpec
from qaform.engine import DEFAULT_FIXTURE, FormEngine, load_form_spec


def _form(*questions: dict[str, Any], **extra: Any) -> dict[str, Any]:
    """Form spec JSON around the given questions."""
    return {
        "id": extra.pop("id", "test-form"),
        "title": extra.pop("title", "Test Form"),
        "version": extra.pop("version", "1.0"),
        "questions": list(questions),
        **extra,
    }


@pytest.fixture
def make_spec() -> Callable[..., FormSpec]:
    """Build a validated FormSpec from question dicts."""

    def _make(*questions: dict[str, Any], **extra: Any) -> FormSpec:
        return FormSpec.model_validate(_form(*questions, **extra))

    return _make


@pytest.fixture
def example_spec() -> FormSpec:
    """The bundled example form (q1 string, q2 boolean, both required)."""
    return load_form_spec(DEFAULT_FIXTURE)


@pytest.fixture
def engine() -> FormEngine:
    """Engine that falls back to the bundled example form."""
    return FormEngine.with_default_fixture()
