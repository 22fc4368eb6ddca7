"""
Secrets policy evaluator with deny-overrides-allow semantics.

Decides whether a read or write of a path in the secrets namespace is
permitted. Evaluation order:

1. No policy, or policy disabled: deny
2. The requested action is disabled: deny
3. A write without a secret-capable host: deny
4. Any ``deny`` pattern matches: deny
5. Any ``allow`` pattern matches: allow
6. Otherwise: deny

Patterns are matched segment by segment: ``*`` matches exactly one segment,
``**`` matches zero or more segments, anything else must match literally.
"""

from __future__ import annotations

from enum import StrEnum

from .ir import SecretsPolicy

# =============================================================================
# Access Decision
# =============================================================================


class SecretAction(StrEnum):
    """Kinds of secrets access."""

    READ = "read"
    WRITE = "write"


class SecretDenial(StrEnum):
    """Why a secrets request was refused."""

    DISABLED = "secrets disabled"
    READS_DISABLED = "secret reads disabled"
    WRITES_DISABLED = "secret writes disabled"
    HOST_UNAVAILABLE = "secrets host unavailable"
    DENIED = "denied by policy"
    NOT_ALLOWED = "not allowed by policy"


class SecretAccessDecision:
    """
    Result of a secrets access evaluation.

    Couples the allow/deny decision with the reason and, when a pattern
    decided the outcome, the pattern itself.
    """

    __slots__ = ("allowed", "reason", "matched_pattern")

    def __init__(
        self,
        allowed: bool,
        reason: str = "",
        matched_pattern: str | None = None,
    ):
        self.allowed = allowed
        self.reason = reason
        self.matched_pattern = matched_pattern

    def __bool__(self) -> bool:
        return self.allowed

    def __repr__(self) -> str:
        return (
            f"SecretAccessDecision(allowed={self.allowed}, reason={self.reason!r}, "
            f"pattern={self.matched_pattern!r})"
        )


# =============================================================================
# Pattern Matching
# =============================================================================


def normalize_path(path: str) -> str:
    """Strip leading and trailing slashes."""
    return path.strip("/")


def _segments(path: str) -> list[str]:
    normalized = normalize_path(path)
    return normalized.split("/") if normalized else []


def match_pattern(pattern: str, path: str) -> bool:
    """
    Match a secrets path against a glob pattern, segment by segment.

    Examples:
        match_pattern("aws/*", "aws/key")          # True
        match_pattern("aws/*", "aws/prod/key")     # False
        match_pattern("aws/**", "aws/prod/key")    # True
    """
    return _match(_segments(pattern), _segments(path))


def _match(pattern: list[str], path: list[str]) -> bool:
    # Iterative with backtracking over the most recent "**"
    p = s = 0
    star_p = star_s = -1
    while s < len(path):
        if p < len(pattern) and pattern[p] == "**":
            star_p, star_s = p, s
            p += 1
        elif p < len(pattern) and (pattern[p] == "*" or pattern[p] == path[s]):
            p += 1
            s += 1
        elif star_p != -1:
            star_s += 1
            p, s = star_p + 1, star_s
        else:
            return False
    while p < len(pattern) and pattern[p] == "**":
        p += 1
    return p == len(pattern)


def _first_match(patterns: list[str], path: str) -> str | None:
    for pattern in patterns:
        if match_pattern(pattern, path):
            return pattern
    return None


# =============================================================================
# Evaluation
# =============================================================================


def evaluate_secret_access(
    action: SecretAction,
    path: str,
    policy: SecretsPolicy | None,
    host_available: bool,
) -> SecretAccessDecision:
    """
    Evaluate a secrets request against a policy.

    Args:
        action: Read or write
        path: Path inside the secrets namespace (leading ``/`` optional)
        policy: Form's secrets policy, if any
        host_available: Whether the host exposes secret storage

    Returns:
        SecretAccessDecision, truthy when access is allowed.
    """
    action = SecretAction(action)
    if policy is None or not policy.enabled:
        return SecretAccessDecision(False, SecretDenial.DISABLED)

    if action == SecretAction.WRITE and not policy.write_enabled:
        return SecretAccessDecision(False, SecretDenial.WRITES_DISABLED)
    if action == SecretAction.READ and not policy.read_enabled:
        return SecretAccessDecision(False, SecretDenial.READS_DISABLED)

    if action == SecretAction.WRITE and not host_available:
        return SecretAccessDecision(False, SecretDenial.HOST_UNAVAILABLE)

    denied_by = _first_match(policy.deny, path)
    if denied_by is not None:
        return SecretAccessDecision(False, SecretDenial.DENIED, denied_by)

    allowed_by = _first_match(policy.allow, path)
    if allowed_by is not None:
        return SecretAccessDecision(True, "allowed by policy", allowed_by)

    return SecretAccessDecision(False, SecretDenial.NOT_ALLOWED)
