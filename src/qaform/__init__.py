"""
qaform - declarative question/answer form interpretation engine.

Interprets a form specification against an answer set: conditional
visibility, next-question navigation, validation and policy-gated store
writes, exposed as a JSON-in/JSON-out engine and a ``qaform`` command.
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.errors import ConfigParseError, QAFormError, StoreError
from .engine import FormEngine

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "FormEngine",
    "QAFormError",
    "ConfigParseError",
    "StoreError",
]
