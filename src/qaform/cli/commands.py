"""
Form commands for the qaform CLI.

Every command reads JSON files, calls the matching FormEngine method and
prints its JSON result:

- describe, schema, examples: inspect a form
- validate, next: check an answer set
- render: text, JSON UI or Adaptive Card output
- submit: validate and apply the store (one answer with --question/--value)
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

import typer

from qaform.core.config import CONFIG_FILENAME, load_settings
from qaform.core.errors import QAFormError
from qaform.engine import FormEngine

from .utils import emit, exit_on_failure, read_object, read_text


class RenderFormat(StrEnum):
    TEXT = "text"
    JSON = "json"
    CARD = "card"


SPEC_OPTION = typer.Option(
    None, "--spec", "-s", help="Form spec JSON file (default: bundled example form)"
)
FORM_ID_OPTION = typer.Option(
    None, "--form-id", "-f", help="Form id to address (default: the spec's own id)"
)
CONTEXT_OPTION = typer.Option(None, "--context", "-c", help="Caller context JSON file")
ANSWERS_OPTION = typer.Option(None, "--answers", "-a", help="Answers JSON file")


def _engine(ctx: typer.Context) -> FormEngine:
    config_path = (ctx.obj or {}).get("config") or Path(CONFIG_FILENAME)
    try:
        return FormEngine.from_settings(load_settings(config_path))
    except QAFormError as e:
        typer.echo(f"Error loading settings: {e}", err=True)
        raise typer.Exit(code=1)


def _spec_config(spec: Path | None) -> str:
    if spec is None:
        return ""
    return json.dumps({"form_spec_json": read_text(spec, "spec")})


def _form_id(engine: FormEngine, form_id: str | None, config_json: str) -> str:
    if form_id:
        return form_id
    try:
        return engine.load_spec(config_json).id
    except QAFormError as e:
        emit(json.dumps({"error": str(e)}))
        raise typer.Exit(code=1)


def _finish(result: str) -> None:
    emit(result)
    exit_on_failure(result)


def describe_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
) -> None:
    """Print the form spec."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    _finish(engine.describe(_form_id(engine, form_id, config_json), config_json))


def schema_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
    context: Path | None = CONTEXT_OPTION,
) -> None:
    """Print the JSON Schema of the visible answers."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    ctx_json = read_text(context, "context", "{}")
    _finish(engine.get_answer_schema(_form_id(engine, form_id, config_json), config_json, ctx_json))


def examples_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
    context: Path | None = CONTEXT_OPTION,
) -> None:
    """Print example answers for the visible questions."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    ctx_json = read_text(context, "context", "{}")
    _finish(
        engine.get_example_answers(_form_id(engine, form_id, config_json), config_json, ctx_json)
    )


def validate_command(
    ctx: typer.Context,
    answers: Path = typer.Argument(..., help="Answers JSON file"),  # noqa: B008
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
) -> None:
    """Validate an answer set. Exits with 1 when it is not valid."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    answers_json = read_text(answers, "answers")
    _finish(
        engine.validate_answers(_form_id(engine, form_id, config_json), config_json, answers_json)
    )


def next_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
    context: Path | None = CONTEXT_OPTION,
    answers: Path | None = ANSWERS_OPTION,
) -> None:
    """Print the next question and progress."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    # The context doubles as the spec-config for this call
    context_obj = read_object(context, "context")
    if spec is not None:
        context_obj["form_spec_json"] = read_text(spec, "spec")
    answers_json = read_text(answers, "answers", "{}")
    _finish(
        engine.next(
            _form_id(engine, form_id, config_json), json.dumps(context_obj), answers_json
        )
    )


def render_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
    context: Path | None = CONTEXT_OPTION,
    answers: Path | None = ANSWERS_OPTION,
    format: RenderFormat = typer.Option(  # noqa: B008
        RenderFormat.TEXT, "--format", help="Output format (text, json or card)"
    ),
) -> None:
    """Render the form state as text, JSON UI or an Adaptive Card."""
    engine = _engine(ctx)
    config_json = _spec_config(spec)
    ctx_json = read_text(context, "context", "{}")
    answers_json = read_text(answers, "answers", "{}")
    resolved_id = _form_id(engine, form_id, config_json)

    if format == RenderFormat.TEXT:
        result = engine.render_text(resolved_id, config_json, ctx_json, answers_json)
    elif format == RenderFormat.JSON:
        result = engine.render_json_ui(resolved_id, config_json, ctx_json, answers_json)
    else:
        result = engine.render_card(resolved_id, config_json, ctx_json, answers_json)
    _finish(result)


def submit_command(
    ctx: typer.Context,
    spec: Path | None = SPEC_OPTION,
    form_id: str | None = FORM_ID_OPTION,
    context: Path | None = CONTEXT_OPTION,
    answers: Path | None = ANSWERS_OPTION,
    question: str | None = typer.Option(
        None, "--question", "-q", help="Question to answer (submits one value)"
    ),
    value: str | None = typer.Option(
        None, "--value", help="JSON value for --question, e.g. '\"Acme\"' or 'true'"
    ),
) -> None:
    """
    Validate answers and apply the store.

    With --question and --value a single answer is patched in first;
    otherwise the whole answer set is submitted.
    """
    if (question is None) != (value is None):
        typer.echo("--question and --value must be given together", err=True)
        raise typer.Exit(code=1)

    engine = _engine(ctx)
    config_json = _spec_config(spec)
    ctx_json = read_text(context, "context", "{}")
    answers_json = read_text(answers, "answers", "{}")
    resolved_id = _form_id(engine, form_id, config_json)

    if question is not None and value is not None:
        result = engine.submit_patch(
            resolved_id, config_json, ctx_json, answers_json, question, value
        )
    else:
        result = engine.submit_all(resolved_id, config_json, ctx_json, answers_json)
    _finish(result)
