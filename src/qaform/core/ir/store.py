"""
Store operation types for qaform IR.

Store operations are side effects applied after a successful submission.
Each writes one value into one of three namespaces of the store context.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StoreTarget(StrEnum):
    """Namespaces a store operation can write into."""

    ANSWERS = "answers"
    STATE = "state"
    SECRETS = "secrets"


class StoreOp(BaseModel):
    """
    A single write into the store context.

    Examples:
        - StoreOp(target=STATE, path="/onboarding/done", value=True)
        - StoreOp(target=SECRETS, path="/aws/key", value="{{ answers.aws_key }}")

    String values containing ``{{`` are rendered as templates against the
    answers and state before being written.
    """

    target: StoreTarget
    path: str = Field(description="JSON pointer within the target namespace")
    value: Any = None

    model_config = ConfigDict(frozen=True, extra="forbid")
