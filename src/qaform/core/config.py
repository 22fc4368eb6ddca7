"""
Engine settings.

Settings come from the ``[engine]`` table of a ``qaform.toml`` file:

    [engine]
    visibility_mode = "visible"     # visible | hidden | error
    max_expression_depth = 32       # 1 to 32
    default_form = "forms/onboarding.json"

``QAFORM_VISIBILITY_MODE`` in the environment overrides the file.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigParseError
from .ir import MAX_EXPRESSION_DEPTH
from .visibility import VisibilityMode

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "qaform.toml"
VISIBILITY_MODE_ENV_VAR = "QAFORM_VISIBILITY_MODE"


@dataclass(frozen=True)
class EngineSettings:
    """Engine configuration."""

    visibility_mode: VisibilityMode = VisibilityMode.VISIBLE
    max_expression_depth: int = MAX_EXPRESSION_DEPTH
    default_form: Path | None = None  # Spec used when a call supplies none


def _visibility_mode(raw: str, source: str) -> VisibilityMode:
    try:
        return VisibilityMode(raw.lower().strip())
    except ValueError:
        valid = ", ".join(m.value for m in VisibilityMode)
        raise ConfigParseError(source, f"unknown visibility mode '{raw}' (valid: {valid})")


def load_settings(path: Path | None = None) -> EngineSettings:
    """
    Load engine settings.

    Args:
        path: A ``qaform.toml`` file. When omitted or missing, defaults are used.

    Returns:
        EngineSettings with the environment override applied.

    Raises:
        ConfigParseError: If the file is not valid TOML or holds invalid values.
    """
    data: dict = {}
    if path is not None and path.exists():
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(str(path), str(e)) from e
    elif path is not None:
        logger.debug("Settings file %s not found, using defaults", path)

    engine = data.get("engine", {})

    mode = VisibilityMode.VISIBLE
    if "visibility_mode" in engine:
        mode = _visibility_mode(str(engine["visibility_mode"]), str(path))
    env_mode = os.environ.get(VISIBILITY_MODE_ENV_VAR, "").strip()
    if env_mode:
        mode = _visibility_mode(env_mode, VISIBILITY_MODE_ENV_VAR)

    depth = engine.get("max_expression_depth", MAX_EXPRESSION_DEPTH)
    if not isinstance(depth, int) or isinstance(depth, bool) or depth < 1:
        raise ConfigParseError(
            str(path), f"max_expression_depth must be a positive integer, got {depth!r}"
        )
    if depth > MAX_EXPRESSION_DEPTH:
        # Form conditions are checked against the hard bound when a form loads
        raise ConfigParseError(
            str(path),
            f"max_expression_depth may not exceed {MAX_EXPRESSION_DEPTH}, got {depth}",
        )

    default_form = engine.get("default_form")
    if default_form is not None and path is not None:
        default_form = (path.parent / default_form).resolve()
    elif default_form is not None:
        default_form = Path(default_form)

    return EngineSettings(
        visibility_mode=mode,
        max_expression_depth=depth,
        default_form=default_form,
    )
