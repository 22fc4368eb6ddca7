"""Core qaform functionality: IR, conditions, visibility, navigation, validation and store."""

from . import ir
from .config import EngineSettings, load_settings
from .errors import (
    ConfigParseError,
    ErrorContext,
    ExpressionError,
    FormUnavailableError,
    QAFormError,
    StoreError,
    VisibilityError,
)
from .progress import (
    NavigationResult,
    ProgressContext,
    fill_defaults,
    navigate,
    next_question,
    resolve_computed,
)
from .render import build_render_payload, render_card, render_json_ui, render_text
from .schema import answers_schema, example_answers
from .secrets import SecretAccessDecision, SecretAction, evaluate_secret_access, match_pattern
from .store import StoreContext
from .validator import validate
from .visibility import VisibilityMap, VisibilityMode, resolve_visibility

__all__ = [
    "ir",
    "QAFormError",
    "ConfigParseError",
    "FormUnavailableError",
    "ExpressionError",
    "VisibilityError",
    "StoreError",
    "ErrorContext",
    "EngineSettings",
    "load_settings",
    "VisibilityMap",
    "VisibilityMode",
    "resolve_visibility",
    "ProgressContext",
    "NavigationResult",
    "next_question",
    "navigate",
    "resolve_computed",
    "fill_defaults",
    "validate",
    "SecretAction",
    "SecretAccessDecision",
    "evaluate_secret_access",
    "match_pattern",
    "StoreContext",
    "answers_schema",
    "example_answers",
    "build_render_payload",
    "render_text",
    "render_json_ui",
    "render_card",
]
