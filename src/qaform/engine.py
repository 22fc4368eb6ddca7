"""
JSON-in/JSON-out call surface for hosts embedding the form engine.

Every call takes JSON text and returns JSON text. Failures come back as
``{"error": "<message>"}``; validation failures are reported as data in the
submission response instead.

The form spec is resolved from a spec-config object:

    {"form_spec_json": "<json text>"}   # spec as an embedded JSON string
    {"form_spec": {...}}                # spec as an object

A blank config, or one naming neither key, falls back to the engine's
default spec. ``next`` and ``apply_store`` read the spec-config from the
caller context itself.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .core.config import EngineSettings
from .core.errors import ConfigParseError, FormUnavailableError, JsonEncodeError, QAFormError
from .core.ir import FormSpec, ProgressPolicy, RenderPayload, ValidationResult
from .core.progress import ProgressContext, fill_defaults, navigate, resolve_computed
from .core.render import build_render_payload, render_card, render_json_ui, render_text
from .core.schema import answers_schema, example_answers
from .core.store import StoreContext
from .core.validator import validate
from .core.visibility import resolve_visibility

logger = logging.getLogger(__name__)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
DEFAULT_FIXTURE = FIXTURES_DIR / "simple_form.json"


# =============================================================================
# Parsing helpers
# =============================================================================


def parse_form_spec(text: str, what: str = "form spec") -> FormSpec:
    """Parse and validate form spec JSON text."""
    try:
        return FormSpec.model_validate_json(text)
    except ValidationError as e:
        raise ConfigParseError(what, _pydantic_detail(e)) from e


def load_form_spec(path: Path) -> FormSpec:
    """Load a form spec from a JSON file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(str(path), str(e)) from e
    return parse_form_spec(text, str(path))


def _pydantic_detail(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def _loads_object(text: str, what: str) -> dict[str, Any]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ConfigParseError(what, str(e)) from e
    if not isinstance(value, dict):
        raise ConfigParseError(what, "expected a JSON object")
    return value


def parse_context(text: str | None) -> dict[str, Any]:
    """Parse caller context JSON, degrading to ``{}`` when malformed."""
    if not text or not text.strip():
        return {}
    try:
        return _loads_object(text, "context")
    except ConfigParseError as e:
        logger.warning("Ignoring unparseable context: %s", e)
        return {}


def parse_answers(text: str | None) -> dict[str, Any]:
    """Parse answers JSON, degrading to ``{}`` when malformed."""
    if not text or not text.strip():
        return {}
    try:
        return _loads_object(text, "answers")
    except ConfigParseError as e:
        logger.warning("Ignoring unparseable answers: %s", e)
        return {}


def context_answers(context: dict[str, Any]) -> dict[str, Any]:
    answers = context.get("answers")
    return dict(answers) if isinstance(answers, dict) else {}


def secrets_host_available(context: dict[str, Any]) -> bool:
    """Read ``secrets_host_available`` from the context or its ``config`` object."""
    flag = context.get("secrets_host_available")
    if isinstance(flag, bool):
        return flag
    config = context.get("config")
    if isinstance(config, dict) and isinstance(config.get("secrets_host_available"), bool):
        return config["secrets_host_available"]
    return False


# =============================================================================
# Engine
# =============================================================================


class FormEngine:
    """
    Stateless form engine.

    Holds only immutable configuration: the default spec used when a call
    supplies none, and engine settings. Safe to share between callers.
    """

    def __init__(
        self,
        default_spec: FormSpec | None = None,
        settings: EngineSettings | None = None,
    ):
        self.default_spec = default_spec
        self.settings = settings or EngineSettings()

    @classmethod
    def with_default_fixture(cls, settings: EngineSettings | None = None) -> FormEngine:
        """Engine that falls back to the bundled example form."""
        return cls(load_form_spec(DEFAULT_FIXTURE), settings)

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> FormEngine:
        """Engine whose default spec is ``settings.default_form``, or the bundled example."""
        path = settings.default_form or DEFAULT_FIXTURE
        return cls(load_form_spec(path), settings)

    # -- Spec resolution --

    def load_spec(self, config_json: str | None) -> FormSpec:
        """Resolve the form spec named by a spec-config, or the default spec."""
        config: dict[str, Any] = {}
        if config_json and config_json.strip():
            config = _loads_object(config_json, "config")

        if config.get("form_spec_json") is not None:
            spec_json = config["form_spec_json"]
            if not isinstance(spec_json, str):
                raise ConfigParseError("config", "form_spec_json must be a string")
            return parse_form_spec(spec_json)

        if config.get("form_spec") is not None:
            try:
                return FormSpec.model_validate(config["form_spec"])
            except ValidationError as e:
                raise ConfigParseError("form spec", _pydantic_detail(e)) from e

        if self.default_spec is None:
            raise ConfigParseError("config", "no form spec supplied and no default configured")
        return self.default_spec

    def ensure_form(self, form_id: str, config_json: str | None) -> FormSpec:
        spec = self.load_spec(config_json)
        if spec.id != form_id:
            raise FormUnavailableError(form_id)
        return spec

    # -- Response helpers --

    def _respond(self, build: Callable[[], Any]) -> str:
        try:
            value = build()
        except QAFormError as e:
            logger.debug("Engine call failed: %s", e)
            return json.dumps({"error": str(e)}, ensure_ascii=False)
        return _dumps(value)

    def _visibility(self, spec: FormSpec, answers: dict[str, Any]) -> dict[str, bool]:
        return resolve_visibility(
            spec,
            answers,
            self.settings.visibility_mode,
            max_depth=self.settings.max_expression_depth,
        )

    def _payload(
        self, spec: FormSpec, context: dict[str, Any], answers: dict[str, Any]
    ) -> RenderPayload:
        return build_render_payload(
            spec,
            context,
            answers,
            mode=self.settings.visibility_mode,
            max_depth=self.settings.max_expression_depth,
        )

    def _validate(
        self,
        spec: FormSpec,
        answers: dict[str, Any],
        policy: ProgressPolicy | None = None,
    ) -> ValidationResult:
        return validate(
            spec,
            answers,
            mode=self.settings.visibility_mode,
            max_depth=self.settings.max_expression_depth,
            policy=policy,
        )

    # -- Calls --

    def describe(self, form_id: str, config_json: str | None = "") -> str:
        """The form spec as JSON."""
        return self._respond(lambda: self.ensure_form(form_id, config_json).to_json_dict())

    def get_answer_schema(
        self, form_id: str, config_json: str | None = "", ctx_json: str | None = "{}"
    ) -> str:
        """JSON Schema for the questions visible under ``context["answers"]``."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, config_json)
            answers = context_answers(parse_context(ctx_json))
            return answers_schema(spec, self._visibility(spec, answers))

        return self._respond(build)

    def get_example_answers(
        self, form_id: str, config_json: str | None = "", ctx_json: str | None = "{}"
    ) -> str:
        """Example answers for the questions visible under ``context["answers"]``."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, config_json)
            answers = context_answers(parse_context(ctx_json))
            return example_answers(spec, self._visibility(spec, answers))

        return self._respond(build)

    def validate_answers(
        self, form_id: str, config_json: str | None, answers_json: str
    ) -> str:
        """Validation verdict for a complete answer set."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, config_json)
            answers = _loads_object(answers_json, "answers")
            return self._validate(spec, answers).model_dump(mode="json")

        return self._respond(build)

    def next(self, form_id: str, ctx_json: str | None, answers_json: str | None) -> str:
        """Next question and progress; the context doubles as the spec-config."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, ctx_json)
            context = parse_context(ctx_json)
            answers = parse_answers(answers_json)
            visibility = self._visibility(spec, answers)
            result = navigate(spec, ProgressContext(answers, context), visibility)
            logger.debug("Next question for %s: %s", form_id, result.next_question_id)
            return result.to_dict()

        return self._respond(build)

    def apply_store(self, form_id: str, ctx_json: str | None, answers_json: str | None) -> str:
        """Apply the form's store operations to the context; the context is the spec-config."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, ctx_json)
            context = parse_context(ctx_json)
            store = StoreContext.from_value(context)
            store.answers = parse_answers(answers_json)
            store.apply_ops(spec.store, spec.secrets_policy, secrets_host_available(context))
            return store.to_value()

        return self._respond(build)

    def render_payload(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
    ) -> RenderPayload:
        spec = self.ensure_form(form_id, config_json)
        return self._payload(spec, parse_context(ctx_json), parse_answers(answers_json))

    def render_text(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
    ) -> str:
        """Plain text summary; errors still come back as JSON."""
        try:
            payload = self.render_payload(form_id, config_json, ctx_json, answers_json)
        except QAFormError as e:
            return json.dumps({"error": str(e)}, ensure_ascii=False)
        return render_text(payload)

    def render_json_ui(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
    ) -> str:
        return self._respond(
            lambda: render_json_ui(
                self.render_payload(form_id, config_json, ctx_json, answers_json)
            )
        )

    def render_card(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
    ) -> str:
        return self._respond(
            lambda: render_card(self.render_payload(form_id, config_json, ctx_json, answers_json))
        )

    def submit_patch(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
        question_id: str,
        value_json: str,
    ) -> str:
        """Set one answer, then validate and (if valid) apply the store."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, config_json)
            try:
                value = json.loads(value_json)
            except (json.JSONDecodeError, RecursionError) as e:
                raise ConfigParseError("value", str(e)) from e
            answers = parse_answers(answers_json)
            answers[question_id] = value
            return self._submit(spec, parse_context(ctx_json), answers)

        return self._respond(build)

    def submit_all(
        self,
        form_id: str,
        config_json: str | None,
        ctx_json: str | None,
        answers_json: str | None,
    ) -> str:
        """Validate a whole answer set and (if valid) apply the store."""

        def build() -> dict[str, Any]:
            spec = self.ensure_form(form_id, config_json)
            return self._submit(spec, parse_context(ctx_json), parse_answers(answers_json))

        return self._respond(build)

    def _submit(
        self, spec: FormSpec, context: dict[str, Any], answers: dict[str, Any]
    ) -> dict[str, Any]:
        policy = ProgressContext(answers, context).policy_for(spec)
        validation = self._validate(spec, answers, policy)
        payload = self._payload(spec, context, answers)
        progress = {"answered": payload.progress.answered, "total": payload.progress.total}

        if not validation.valid:
            return {
                "status": "error",
                "next_question_id": payload.next_question_id,
                "progress": progress,
                "answers": answers,
                "validation": validation.model_dump(mode="json"),
            }

        store = StoreContext.from_value(context)
        stored = fill_defaults(spec, answers, policy, self._visibility(spec, answers))
        store.answers = resolve_computed(
            spec, stored, max_depth=self.settings.max_expression_depth
        )
        store.apply_ops(spec.store, spec.secrets_policy, secrets_host_available(context))
        return {
            "status": str(payload.status),
            "next_question_id": payload.next_question_id,
            "progress": progress,
            "answers": answers,
            "store": store.to_value(),
        }


def _dumps(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        return json.dumps({"error": str(JsonEncodeError(str(e)))})
