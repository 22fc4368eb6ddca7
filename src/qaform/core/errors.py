"""
Error types for qaform spec loading, expression handling, and store application.

Validation failures are not errors: they travel as ``ValidationResult`` data.
Everything here is caught at the engine boundary and reported as an
``{"error": "..."}`` payload.
"""

from __future__ import annotations

from dataclasses import dataclass


class QAFormError(Exception):
    """Base exception for all qaform errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ConfigParseError(QAFormError):
    """
    Raised when spec, config, or answer JSON cannot be parsed.

    Examples:
    - Malformed JSON text
    - Unknown keys in a form spec
    - Enum question without choices
    """

    def __init__(self, what: str, detail: str):
        self.what = what
        self.detail = detail
        super().__init__(f"failed to parse {what}: {detail}")


class FormUnavailableError(QAFormError):
    """Raised when the requested form id does not match the loaded spec."""

    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__(f"form '{form_id}' is not available")


class JsonEncodeError(QAFormError):
    """Raised when a result cannot be serialized to JSON."""

    def __init__(self, detail: str):
        super().__init__(f"json encode error: {detail}")


class ExpressionError(QAFormError):
    """Base class for expression parsing and evaluation errors."""

    pass


class ExpressionParseError(ExpressionError):
    """Raised when expression shorthand text cannot be parsed."""

    def __init__(self, message: str, pos: int = 0):
        self.pos = pos
        super().__init__(message)


class ExpressionDepthError(ExpressionError):
    """Raised when an expression tree nests deeper than the allowed bound."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"expression nesting exceeds maximum depth of {limit}")


class VisibilityError(QAFormError):
    """
    Raised in strict visibility mode when a condition is indeterminate.

    Carries the id of the question whose ``visible_if`` could not be decided.
    """

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"visibility of question '{question_id}' is indeterminate")


class StoreError(QAFormError):
    """
    Raised when a batch of store operations cannot be applied.

    The batch is all-or-nothing, so raising this means no namespace was changed.
    """

    kind = "store_error"

    def __init__(self, reason: str, op_index: int | None = None, path: str | None = None):
        self.reason = reason
        self.op_index = op_index
        self.path = path
        context = ErrorContext(op_index, path) if op_index is not None else None
        super().__init__(reason, context)

    def _format_message(self) -> str:
        if self.context:
            return f"store apply failed at {self.context.format()}: {self.message}"
        return f"store apply failed: {self.message}"


class SecretsDisabledError(StoreError):
    """Secrets policy is absent or disabled."""

    kind = "secrets_disabled"


class WriteDeniedError(StoreError):
    """Secrets policy denies writing this path."""

    kind = "write_denied"


class HostUnavailableError(StoreError):
    """The host does not expose a secret-capable backing store."""

    kind = "host_unavailable"


class InvalidPathError(StoreError):
    """Store path is not a usable JSON pointer for the target namespace."""

    kind = "invalid_path"


class StoreTemplateError(StoreError):
    """A templated store value failed to render."""

    kind = "template_error"


@dataclass
class ErrorContext:
    """Location of a failing store operation within its batch."""

    op_index: int
    path: str | None = None

    def format(self) -> str:
        location = f"op #{self.op_index}"
        if self.path is not None:
            location += f" ({self.path})"
        return location
