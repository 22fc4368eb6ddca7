"""
qaform Intermediate Representation (IR) types.

This package contains the typed model of a form: questions, expressions,
policies, store operations, answers, validation results and render payloads.
Everything arrives as JSON and is validated into these frozen models.

All types are re-exported from this package.
"""

# Answers and validation results
from .answers import (
    AnswerMeta,
    AnswerSet,
    ValidationIssue,
    ValidationResult,
)

# Expressions
from .expressions import (
    MAX_EXPRESSION_DEPTH,
    AndExpr,
    AnswerRef,
    CompareExpr,
    CompareOp,
    Condition,
    Expr,
    IsSetExpr,
    LiteralExpr,
    NotExpr,
    OrExpr,
    VarRef,
    expression_depth,
)

# Form specification
from .form import (
    CrossFieldValidation,
    FormPresentation,
    FormSpec,
    ProgressPolicy,
    SecretsPolicy,
)

# Questions
from .questions import (
    Constraint,
    ListSpec,
    QuestionSpec,
    QuestionType,
)

# Render payloads
from .render import (
    RenderPayload,
    RenderProgress,
    RenderQuestion,
    RenderStatus,
)

# Store operations
from .store import (
    StoreOp,
    StoreTarget,
)

__all__ = [
    # Answers
    "AnswerMeta",
    "AnswerSet",
    "ValidationIssue",
    "ValidationResult",
    # Expressions
    "MAX_EXPRESSION_DEPTH",
    "AndExpr",
    "AnswerRef",
    "CompareExpr",
    "CompareOp",
    "Condition",
    "Expr",
    "IsSetExpr",
    "LiteralExpr",
    "NotExpr",
    "OrExpr",
    "VarRef",
    "expression_depth",
    # Form
    "CrossFieldValidation",
    "FormPresentation",
    "FormSpec",
    "ProgressPolicy",
    "SecretsPolicy",
    # Questions
    "Constraint",
    "ListSpec",
    "QuestionSpec",
    "QuestionType",
    # Render
    "RenderPayload",
    "RenderProgress",
    "RenderQuestion",
    "RenderStatus",
    # Store
    "StoreOp",
    "StoreTarget",
]
