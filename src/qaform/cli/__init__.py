"""
qaform CLI Package.

- commands.py: form commands (describe, schema, examples, validate, next, render, submit)
- utils.py: shared utilities (version, logging, file loading, output)
"""

from __future__ import annotations

from pathlib import Path

import typer

from qaform.cli.commands import (
    describe_command,
    examples_command,
    next_command,
    render_command,
    schema_command,
    submit_command,
    validate_command,
)
from qaform.cli.utils import setup_logging, version_callback

app = typer.Typer(
    help="""qaform – question/answer form engine

Inputs are JSON files; results are printed as JSON.
Without --spec, the bundled example form is used.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Path | None = typer.Option(  # noqa: B008
        None, "--config", help="Settings file (default: ./qaform.toml)"
    ),
) -> None:
    """qaform CLI main callback for global options."""
    setup_logging(verbose)
    ctx.obj = {"config": config}


app.command(name="describe")(describe_command)
app.command(name="schema")(schema_command)
app.command(name="examples")(examples_command)
app.command(name="validate")(validate_command)
app.command(name="next")(next_command)
app.command(name="render")(render_command)
app.command(name="submit")(submit_command)


def main() -> None:
    """Entry point for the ``qaform`` command."""
    app()


__all__ = ["app", "main"]
