"""
qaform CLI utilities.

Shared helpers used by the command modules: version display, logging
setup, file loading and output.
"""

from __future__ import annotations

import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from qaform._version import get_version

console = Console()


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"qaform version {get_version()}")
        python = f"{platform.python_implementation()} {platform.python_version()}"
        typer.echo(f"  Python:        {python}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through a Rich handler on stderr."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(show_time=False, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def read_text(path: Path | None, what: str, default: str = "") -> str:
    """Read an input file, exiting with code 1 if it cannot be read."""
    if path is None:
        return default
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Cannot read {what} file {path}: {e}", err=True)
        raise typer.Exit(code=1)


def read_object(path: Path | None, what: str) -> dict[str, Any]:
    """Read a JSON object file; a missing option yields ``{}``."""
    text = read_text(path, what)
    if not text.strip():
        return {}
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        typer.echo(f"Invalid JSON in {what} file {path}: {e}", err=True)
        raise typer.Exit(code=1)
    if not isinstance(value, dict):
        typer.echo(f"{what.capitalize()} file {path} must hold a JSON object", err=True)
        raise typer.Exit(code=1)
    return value


def emit(result: str) -> None:
    """Print an engine result; pretty JSON on a terminal, raw text otherwise."""
    if sys.stdout.isatty():
        try:
            json.loads(result)
        except json.JSONDecodeError:
            console.print(result, markup=False, highlight=False)
        else:
            console.print_json(result)
    else:
        typer.echo(result)


def exit_on_failure(result: str) -> None:
    """Exit with code 1 for error payloads and rejected submissions."""
    try:
        value = json.loads(result)
    except json.JSONDecodeError:
        return
    if not isinstance(value, dict):
        return
    if "error" in value or value.get("status") == "error" or value.get("valid") is False:
        raise typer.Exit(code=1)
