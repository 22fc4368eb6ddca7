"""
qaform condition language.

Tokenizer and parser for the condition shorthand, and the three-valued
evaluator shared by visibility, navigation and validation.

Usage:
    from qaform.core.expression_lang import parse_expr, evaluate

    expr = parse_expr('plan == "pro" and seats > 5')
    evaluate(expr, {"answers": {"plan": "pro"}})
    # None: seats is absent, so the result is indeterminate
"""

from qaform.core.expression_lang.evaluator import (
    MISSING,
    answer_context,
    evaluate,
    evaluate_value,
    json_equal,
    resolve_path,
)
from qaform.core.expression_lang.parser import parse_expr

__all__ = [
    "MISSING",
    "answer_context",
    "evaluate",
    "evaluate_value",
    "json_equal",
    "parse_expr",
    "resolve_path",
]
