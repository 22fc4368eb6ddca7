"""
JSON pointer helpers (RFC 6901) over plain dict/list documents.

Used by the expression evaluator for lookups and by the store engine for
writes. Lookups never raise; writes raise ``ValueError`` on unusable paths.
"""

from __future__ import annotations

from typing import Any


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def split_pointer(pointer: str) -> list[str]:
    """Split a JSON pointer into unescaped reference tokens.

    ``""`` refers to the whole document and yields no tokens.

    Raises:
        ValueError: If a non-empty pointer does not start with ``/``.
    """
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return [token.replace("~1", "/").replace("~0", "~") for token in pointer[1:].split("/")]


def escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _array_index(token: str, length: int) -> int | None:
    if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
        return None
    index = int(token)
    return index if index < length else None


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Look up ``pointer`` in ``document``, returning ``MISSING`` if absent."""
    try:
        tokens = split_pointer(pointer)
    except ValueError:
        return MISSING
    current = document
    for token in tokens:
        if isinstance(current, dict):
            if token not in current:
                return MISSING
            current = current[token]
        elif isinstance(current, list):
            index = _array_index(token, len(current))
            if index is None:
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def set_pointer(document: dict[str, Any], pointer: str, value: Any) -> dict[str, Any]:
    """Write ``value`` at ``pointer`` inside ``document``, in place.

    Missing intermediate containers are created as objects. In arrays, an
    existing index is replaced and ``-`` (or an index equal to the length)
    appends. The empty pointer replaces the whole document, which must stay
    an object.

    Returns:
        The (possibly replaced) document.

    Raises:
        ValueError: If the pointer is malformed or walks through a scalar.
    """
    tokens = split_pointer(pointer)
    if not tokens:
        if not isinstance(value, dict):
            raise ValueError("the root of a namespace must be an object")
        return value

    current: Any = document
    for depth, token in enumerate(tokens[:-1]):
        if isinstance(current, dict):
            child = current.get(token)
            if child is None:
                child = {}
                current[token] = child
            current = child
        elif isinstance(current, list):
            index = _array_index(token, len(current))
            if index is None:
                raise ValueError(f"array index {token!r} out of range in {pointer!r}")
            current = current[index]
        else:
            walked = "/" + "/".join(escape_token(t) for t in tokens[:depth])
            raise ValueError(f"cannot write through non-container at {walked!r}")

    last = tokens[-1]
    if isinstance(current, dict):
        current[last] = value
    elif isinstance(current, list):
        if last == "-" or last == str(len(current)):
            current.append(value)
        else:
            index = _array_index(last, len(current))
            if index is None:
                raise ValueError(f"array index {last!r} out of range in {pointer!r}")
            current[index] = value
    else:
        raise ValueError(f"cannot write through non-container in {pointer!r}")
    return document
