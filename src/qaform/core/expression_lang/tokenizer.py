"""
Tokenizer for the qaform condition shorthand.

Converts a condition string into a sequence of typed tokens.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto

from qaform.core.errors import ExpressionParseError


class TokenKind(StrEnum):
    """Token types for the condition shorthand."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()

    # Answer paths and keywords
    PATH = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    IN = auto()
    IS = auto()

    # Operators
    EQ = auto()
    NE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the condition tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_KEYWORDS: dict[str, TokenKind] = {
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "null": TokenKind.NULL,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
    "in": TokenKind.IN,
    "is": TokenKind.IS,
}

# Number pattern: optional sign, int or float
_NUMBER_RE = re.compile(r"-?\d+(\.\d+)?([eE][+-]?\d+)?")
# Path: segments of word characters and dashes joined by "." or "/",
# optionally rooted at "/" (a JSON pointer against the whole context)
_PATH_RE = re.compile(r"/?[A-Za-z_][\w-]*(?:[./][\w-]+)*")

_TWO_CHAR_OPS: dict[str, TokenKind] = {
    "==": TokenKind.EQ,
    "!=": TokenKind.NE,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
}

_SINGLE_CHAR_OPS: dict[str, TokenKind] = {
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
}


def tokenize(source: str) -> list[Token]:
    """Tokenize a condition string into a list of tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # String literals
        if c in ('"', "'"):
            i, tok = _read_string(source, i)
            tokens.append(tok)
            continue

        # Numbers, including a leading minus sign
        if c.isdecimal() or (c == "-" and i + 1 < n and source[i + 1].isdecimal()):
            m = _NUMBER_RE.match(source, i)
            assert m is not None
            num_str = m.group(0)
            kind = TokenKind.INT if m.group(1) is None and m.group(2) is None else TokenKind.FLOAT
            tokens.append(Token(kind, num_str, i))
            i = m.end()
            continue

        # Paths and keywords
        if c.isalpha() or c in "_/":
            m = _PATH_RE.match(source, i)
            if m is None:
                raise ExpressionParseError(f"Unexpected character: {c!r}", i)
            word = m.group(0)
            kind = _KEYWORDS.get(word, TokenKind.PATH)
            tokens.append(Token(kind, word, i))
            i = m.end()
            continue

        two = source[i : i + 2]
        if two in _TWO_CHAR_OPS:
            tokens.append(Token(_TWO_CHAR_OPS[two], two, i))
            i += 2
            continue

        if c in _SINGLE_CHAR_OPS:
            tokens.append(Token(_SINGLE_CHAR_OPS[c], c, i))
            i += 1
            continue

        raise ExpressionParseError(f"Unexpected character: {c!r}", i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens


def _read_string(source: str, start: int) -> tuple[int, Token]:
    """Read a quoted string literal."""
    quote = source[start]
    i = start + 1
    n = len(source)
    chars: list[str] = []

    while i < n:
        c = source[i]
        if c == "\\":
            if i + 1 < n:
                chars.append(source[i + 1])
                i += 2
                continue
            raise ExpressionParseError("Unterminated escape sequence", i)
        if c == quote:
            return i + 1, Token(TokenKind.STRING, "".join(chars), start)
        chars.append(c)
        i += 1

    raise ExpressionParseError("Unterminated string literal", start)
