"""
Store engine: applies a form's store operations to the caller's context.

The store context has three namespaces (``answers``, ``state`` and
``secrets``), each a JSON object. A batch of operations is applied to deep
copies and committed only if every operation succeeds, so a failing batch
leaves the context exactly as it was.

String values containing ``{{`` are Jinja2 templates rendered in a sandbox
against ``answers`` and ``state``. A value that is a single placeholder,
such as ``"{{ answers.port }}"``, yields the native value rather than text.
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from jinja2 import StrictUndefined, TemplateError, Undefined
from jinja2.sandbox import SandboxedEnvironment

from .errors import (
    HostUnavailableError,
    InvalidPathError,
    SecretsDisabledError,
    StoreError,
    StoreTemplateError,
    WriteDeniedError,
)
from .ir import SecretsPolicy, StoreOp, StoreTarget
from .pointer import set_pointer
from .secrets import SecretAction, SecretDenial, evaluate_secret_access

logger = logging.getLogger(__name__)

_SINGLE_PLACEHOLDER_RE = re.compile(r"^\s*\{\{(?P<expr>(?:(?!\}\}).)+)\}\}\s*$", re.DOTALL)

_DENIAL_ERRORS: dict[str, type[StoreError]] = {
    SecretDenial.DISABLED: SecretsDisabledError,
    SecretDenial.HOST_UNAVAILABLE: HostUnavailableError,
}


# =============================================================================
# Templates
# =============================================================================


def create_template_env() -> SandboxedEnvironment:
    """Sandboxed environment for store value templates."""
    return SandboxedEnvironment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


# Module-level singleton
_env: SandboxedEnvironment | None = None


def get_template_env() -> SandboxedEnvironment:
    """Get the shared template environment (lazy singleton)."""
    global _env
    if _env is None:
        _env = create_template_env()
    return _env


def render_value(value: Any, variables: Mapping[str, Any]) -> Any:
    """
    Render templates inside a store value.

    Strings without ``{{`` and non-string scalars are returned unchanged;
    lists and objects are rendered element by element.

    Raises:
        TemplateError: If a template fails to compile or render.
    """
    if isinstance(value, str):
        return _render_string(value, variables) if "{{" in value else value
    if isinstance(value, list):
        return [render_value(item, variables) for item in value]
    if isinstance(value, dict):
        return {key: render_value(item, variables) for key, item in value.items()}
    return value


def _render_string(source: str, variables: Mapping[str, Any]) -> Any:
    env = get_template_env()
    single = _SINGLE_PLACEHOLDER_RE.match(source)
    if single is not None:
        result = env.compile_expression(single.group("expr"), undefined_to_none=False)(
            **variables
        )
        if isinstance(result, Undefined):
            # Force StrictUndefined to raise its descriptive error
            str(result)
        return result
    return env.from_string(source).render(**variables)


# =============================================================================
# Store Context
# =============================================================================


def _object(value: Any) -> dict[str, Any]:
    return copy.deepcopy(value) if isinstance(value, dict) else {}


@dataclass
class StoreContext:
    """
    The three namespaces store operations write into.

    Built from the caller context with ``from_value`` and returned with
    ``to_value``; both use a JSON object with keys ``answers``, ``state``
    and ``secrets``.
    """

    answers: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    secrets: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Mapping[str, Any] | None) -> StoreContext:
        """Build from a context object; missing or non-object namespaces become ``{}``."""
        value = value or {}
        return cls(
            answers=_object(value.get("answers")),
            state=_object(value.get("state")),
            secrets=_object(value.get("secrets")),
        )

    def to_value(self) -> dict[str, Any]:
        return {
            "answers": copy.deepcopy(self.answers),
            "state": copy.deepcopy(self.state),
            "secrets": copy.deepcopy(self.secrets),
        }

    def apply_ops(
        self,
        ops: list[StoreOp],
        policy: SecretsPolicy | None,
        host_available: bool,
    ) -> None:
        """
        Apply a batch of store operations, all or nothing.

        Args:
            ops: Operations in application order
            policy: Secrets policy gating writes to the ``secrets`` namespace
            host_available: Whether the host can hold secrets

        Raises:
            StoreError: The first failing operation; nothing is committed.
        """
        working = {
            StoreTarget.ANSWERS: copy.deepcopy(self.answers),
            StoreTarget.STATE: copy.deepcopy(self.state),
            StoreTarget.SECRETS: copy.deepcopy(self.secrets),
        }

        for index, op in enumerate(ops):
            if op.target == StoreTarget.SECRETS:
                _check_secret_write(op, index, policy, host_available)

            if op.path != "" and not op.path.startswith("/"):
                raise InvalidPathError("path must be a JSON pointer", index, op.path)

            variables = {
                "answers": working[StoreTarget.ANSWERS],
                "state": working[StoreTarget.STATE],
            }
            try:
                value = render_value(copy.deepcopy(op.value), variables)
            except TemplateError as e:
                raise StoreTemplateError(f"template error: {e}", index, op.path) from e
            except Exception as e:
                # Runtime faults inside the sandbox, e.g. division by zero
                raise StoreTemplateError(
                    f"template evaluation failed: {type(e).__name__}: {e}", index, op.path
                ) from e

            try:
                working[op.target] = set_pointer(working[op.target], op.path, value)
            except ValueError as e:
                raise InvalidPathError(str(e), index, op.path) from e

        self.answers = working[StoreTarget.ANSWERS]
        self.state = working[StoreTarget.STATE]
        self.secrets = working[StoreTarget.SECRETS]
        logger.debug("Committed %d store operations", len(ops))


def _check_secret_write(
    op: StoreOp, index: int, policy: SecretsPolicy | None, host_available: bool
) -> None:
    decision = evaluate_secret_access(SecretAction.WRITE, op.path, policy, host_available)
    if decision:
        return
    logger.info("Secret write to %s denied: %s", op.path, decision.reason)
    error_cls = _DENIAL_ERRORS.get(decision.reason, WriteDeniedError)
    raise error_cls(str(decision.reason), index, op.path)
