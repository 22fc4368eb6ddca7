"""
Recursive descent parser for the qaform condition shorthand.

Grammar, loosest binding first:

    expr         := disjunction
    disjunction  := conjunction ("or" conjunction)*
    conjunction  := negation ("and" negation)*
    negation     := "not" negation | comparison
    comparison   := operand [comp_op operand]
                  | operand ["not"] "in" "[" [literal ("," literal)*] "]"
                  | operand "is" ["not"] "null"
    operand      := literal | func_call | PATH | "(" expr ")"
    func_call    := ("is_set" | "var") "(" PATH ")"

A bare path used on its own is a boolean reference (``var``); used as a
comparison operand it is an answer reference. Dotted paths (``address.city``)
are written as pointer segments (``address/city``).
"""

from __future__ import annotations

from qaform.core.errors import ExpressionParseError
from qaform.core.expression_lang.tokenizer import Token, TokenKind, tokenize
from qaform.core.ir.expressions import (
    MAX_EXPRESSION_DEPTH,
    AndExpr,
    AnswerRef,
    CompareExpr,
    CompareOp,
    Expr,
    IsSetExpr,
    LiteralExpr,
    NotExpr,
    OrExpr,
    VarRef,
)

_COMPARE_TOKENS: dict[TokenKind, CompareOp] = {
    TokenKind.EQ: CompareOp.EQ,
    TokenKind.NE: CompareOp.NE,
    TokenKind.LT: CompareOp.LT,
    TokenKind.GT: CompareOp.GT,
    TokenKind.LE: CompareOp.LTE,
    TokenKind.GE: CompareOp.GTE,
}

_KEYWORD_LITERALS: dict[TokenKind, bool | None] = {
    TokenKind.TRUE: True,
    TokenKind.FALSE: False,
    TokenKind.NULL: None,
}

_FUNCTIONS = {"is_set": IsSetExpr, "var": VarRef}


class _Parser:
    """Cursor over a token list that always ends with EOF."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.nesting = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def lookahead(self, offset: int) -> Token:
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def at(self, kind: TokenKind) -> bool:
        return self.current.kind == kind

    def advance(self) -> Token:
        tok = self.current
        self.pos = min(self.pos + 1, len(self.tokens) - 1)
        return tok

    def accept(self, kind: TokenKind) -> bool:
        if not self.at(kind):
            return False
        self.advance()
        return True

    def expect(self, kind: TokenKind) -> Token:
        if not self.at(kind):
            tok = self.current
            raise ExpressionParseError(f"expected {kind}, found {tok.kind} {tok.value!r}", tok.pos)
        return self.advance()

    def nested(self, tok: Token) -> _Nesting:
        return _Nesting(self, tok)

    # -- Grammar --

    def expression(self) -> Expr:
        return self.disjunction()

    def disjunction(self) -> Expr:
        operands = [self.conjunction()]
        while self.accept(TokenKind.OR):
            operands.append(self.conjunction())
        return operands[0] if len(operands) == 1 else OrExpr(expressions=operands)

    def conjunction(self) -> Expr:
        operands = [self.negation()]
        while self.accept(TokenKind.AND):
            operands.append(self.negation())
        return operands[0] if len(operands) == 1 else AndExpr(expressions=operands)

    def negation(self) -> Expr:
        tok = self.current
        if self.accept(TokenKind.NOT):
            with self.nested(tok):
                return NotExpr(expression=self.negation())
        return self.comparison()

    def comparison(self) -> Expr:
        left = self.operand()

        if self.accept(TokenKind.IS):
            present = self.accept(TokenKind.NOT)
            self.expect(TokenKind.NULL)
            is_set = IsSetExpr(path=self._path_of(left))
            return is_set if present else NotExpr(expression=is_set)

        if self.accept(TokenKind.IN):
            return self._membership(left)
        if self.at(TokenKind.NOT) and self.lookahead(1).kind == TokenKind.IN:
            self.advance()
            self.advance()
            return NotExpr(expression=self._membership(left))

        op = _COMPARE_TOKENS.get(self.current.kind)
        if op is not None:
            self.advance()
            return CompareExpr(op=op.value, left=left, right=self.operand())

        # A path standing alone reads as a boolean answer
        if isinstance(left, AnswerRef):
            return VarRef(path=left.path)
        return left

    def operand(self) -> Expr:
        tok = self.current
        if self.accept(TokenKind.LPAREN):
            with self.nested(tok):
                inner = self.expression()
            self.expect(TokenKind.RPAREN)
            return inner

        if tok.kind == TokenKind.PATH:
            function = _FUNCTIONS.get(tok.value)
            if function is not None and self.lookahead(1).kind == TokenKind.LPAREN:
                self.advance()
                self.expect(TokenKind.LPAREN)
                path = self.expect(TokenKind.PATH).value
                self.expect(TokenKind.RPAREN)
                return function(path=_normalize_path(path))
            self.advance()
            return AnswerRef(path=_normalize_path(tok.value))

        return self.literal()

    def literal(self) -> LiteralExpr:
        tok = self.current
        if tok.kind == TokenKind.INT:
            value: object = int(tok.value)
        elif tok.kind == TokenKind.FLOAT:
            value = float(tok.value)
        elif tok.kind == TokenKind.STRING:
            value = tok.value
        elif tok.kind in _KEYWORD_LITERALS:
            value = _KEYWORD_LITERALS[tok.kind]
        else:
            raise ExpressionParseError(f"unexpected {tok.kind} {tok.value!r}", tok.pos)
        self.advance()
        return LiteralExpr(value=value)

    def _membership(self, left: Expr) -> Expr:
        """``x in [a, b]`` becomes ``x == a or x == b``; an empty list is false."""
        self.expect(TokenKind.LBRACKET)
        items: list[LiteralExpr] = []
        if not self.at(TokenKind.RBRACKET):
            items.append(self.literal())
            while self.accept(TokenKind.COMMA):
                items.append(self.literal())
        self.expect(TokenKind.RBRACKET)
        if not items:
            return LiteralExpr(value=False)
        return OrExpr(
            expressions=[
                CompareExpr(op=CompareOp.EQ.value, left=left, right=item) for item in items
            ]
        )

    def _path_of(self, expr: Expr) -> str:
        if isinstance(expr, AnswerRef):
            return expr.path
        raise ExpressionParseError("'is null' requires an answer path", self.current.pos)


class _Nesting:
    """Tracks parenthesis and ``not`` nesting against the depth bound."""

    def __init__(self, parser: _Parser, tok: Token) -> None:
        self.parser = parser
        self.tok = tok

    def __enter__(self) -> None:
        self.parser.nesting += 1
        if self.parser.nesting > MAX_EXPRESSION_DEPTH:
            raise ExpressionParseError("expression nested too deeply", self.tok.pos)

    def __exit__(self, *exc: object) -> None:
        self.parser.nesting -= 1


def _normalize_path(raw: str) -> str:
    """Dotted segments become pointer segments; rooted paths are kept as-is."""
    if raw.startswith("/"):
        return raw
    return raw.replace(".", "/")


def parse_expr(source: str) -> Expr:
    """Parse a condition string into an expression tree.

    Args:
        source: Condition text (e.g., ``plan == "pro" and is_set(seats)``)

    Returns:
        Parsed expression tree.

    Raises:
        ExpressionParseError: If the condition is invalid.
    """
    parser = _Parser(tokenize(source))
    expr = parser.expression()
    if not parser.at(TokenKind.EOF):
        tok = parser.current
        raise ExpressionParseError(f"unexpected trailing input {tok.value!r}", tok.pos)
    return expr
