"""
TALLY Language Parser

Parses TALLY tokens into a list of statement trees.

The parser is a recursive-descent, precedence-climbing parser. Each grammar
rule below is one method; rules are nested from the loosest-binding operator
to the tightest, and every binary tier loops so that operators of equal
precedence chain to the left.

Grammar
-------
    program    → (END* statement (END | EOF))* END* EOF
    statement  → PRINT expression
               | IDENT '=' expression
               | expression
    expression → term (('+' | '-') term)*
    term       → factor (('*' | '/') factor)*
    factor     → postfix ('^' postfix)*
    postfix    → primary '!'*
    primary    → NUMBER | IDENT | '(' expression ')'

Token Source
------------
`Parser` accepts any iterable of tokens: a prepared list, or a live `Lexer`,
in which case tokens are pulled lazily and lexing errors surface in the middle
of parsing. Exhaustion of the source is represented internally by an EOF
sentinel token.

Raises
------
ParseError
    On the first unexpected token, unbalanced parenthesis, or missing operand,
    and for parentheses nested deeper than the Python call stack allows.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from tally.tally_ast import (
    ASTNode,
    Assignment,
    Asterisk,
    BinaryNode,
    ExpressionStatement,
    Factorial,
    Group,
    Minus,
    Number,
    Plus,
    Power,
    Print,
    Slash,
    Statement,
    Variable,
)
from tally.tally_constants import additive_tokens, multiplicative_tokens
from tally.tally_errors import ParseError
from tally.tally_lexer import Token

logger = logging.getLogger(__name__)

BINARY_NODES: dict[str, type[BinaryNode]] = {
    "PLUS": Plus,
    "MINUS": Minus,
    "STAR": Asterisk,
    "SLASH": Slash,
    "CARET": Power,
}


class Parser:
    """
    TALLY Parser Class

    Attributes
    ----------
    position : int
        Number of tokens consumed so far.

    Methods
    -------
    parse() -> list[Statement]
        Parse a complete program.
    parse_statement() -> Statement
        Parse a single print, assignment, or expression statement.
    parse_expression() -> ASTNode
        Parse an additive expression (the loosest-binding tier).
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._source: Iterator[Token] = iter(tokens)
        self._buffer: list[Token] = []
        self._eof: Token | None = None
        self._last: Token | None = None
        self.position: int = 0

    def _fill(self, count: int) -> None:
        while len(self._buffer) < count and self._eof is None:
            tok = next(self._source, None)
            if tok is None:
                last = self._last
                line = last.line if last else 0
                col = last.col + last.length if last else 0
                self._eof = Token("EOF", "EOF", line, col)
            else:
                self._buffer.append(tok)
                self._last = tok

    def current(self) -> Token:
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        self._fill(offset + 1)
        if offset < len(self._buffer):
            return self._buffer[offset]
        assert self._eof is not None  # for mypy
        return self._eof

    def advance(self) -> Token:
        tok = self.current()
        if self._buffer:
            self._buffer.pop(0)
            self.position += 1
        return tok

    def match(self, *types: str) -> Token | None:
        if self.current().type in types:
            return self.advance()
        return None

    def expect(self, *types: str) -> Token:
        tok = self.match(*types)
        if tok is None:
            raise self.unexpected(self.current())
        return tok

    def unexpected(self, tok: Token) -> ParseError:
        if tok.type == "RPAREN":
            return ParseError("Unbalanced parentheses: unexpected ')'", tok)
        if tok.type == "EOF":
            return ParseError("Unexpected end of input", tok)
        return ParseError(f"Unexpected token {tok!r}", tok)

    def parse(self) -> list[Statement]:
        """Parse a full TALLY program and return its statements in order."""
        statements: list[Statement] = []
        while True:
            while self.match("END"):
                pass
            if self.current().type == "EOF":
                break
            start = self.current()
            try:
                statement = self.parse_statement()
            except RecursionError:
                raise ParseError("Expression nested too deeply", start) from None
            logger.debug("parsed %s at %d:%d", statement.kind, statement.line, statement.col)
            statements.append(statement)
            if self.current().type != "EOF":
                self.expect("END")
        return statements

    def parse_statement(self) -> Statement:
        tok = self.current()
        if tok.type == "PRINT":
            return self.parse_print()
        if tok.type == "IDENT" and self.peek().type == "ASSIGN":
            return self.parse_assignment()
        expr = self.parse_expression()
        return ExpressionStatement(expr, line=expr.line, col=expr.col)

    def parse_print(self) -> Print:
        print_tok = self.expect("PRINT")
        expr = self.parse_operand(print_tok)
        return Print(expr, line=print_tok.line, col=print_tok.col)

    def parse_assignment(self) -> Assignment:
        name_tok = self.expect("IDENT")
        assign_tok = self.expect("ASSIGN")
        expr = self.parse_operand(assign_tok)
        return Assignment(str(name_tok.value), expr, line=name_tok.line, col=name_tok.col)

    def parse_operand(self, after: Token) -> ASTNode:
        """Parse the expression required to the right of `print` or `=`."""
        if self.current().type in ("END", "EOF"):
            raise ParseError(f"Expected an expression after {after.value!r}", self.current())
        return self.parse_expression()

    def parse_expression(self) -> ASTNode:
        """expression → term (('+' | '-') term)*"""
        left = self.parse_term()
        while self.current().type in additive_tokens:
            op = self.advance()
            right = self.parse_binary_operand(op, self.parse_term)
            left = BINARY_NODES[op.type](left, right, line=op.line, col=op.col)
        return left

    def parse_term(self) -> ASTNode:
        """term → factor (('*' | '/') factor)*"""
        left = self.parse_factor()
        while self.current().type in multiplicative_tokens:
            op = self.advance()
            right = self.parse_binary_operand(op, self.parse_factor)
            left = BINARY_NODES[op.type](left, right, line=op.line, col=op.col)
        return left

    def parse_factor(self) -> ASTNode:
        """factor → postfix ('^' postfix)*"""
        left = self.parse_postfix()
        while self.current().type == "CARET":
            op = self.advance()
            right = self.parse_binary_operand(op, self.parse_postfix)
            left = Power(left, right, line=op.line, col=op.col)
        return left

    def parse_binary_operand(self, op: Token, rule: Callable[[], ASTNode]) -> ASTNode:
        if self.current().type in ("END", "EOF"):
            raise ParseError(
                f"Missing right-hand operand after {op.value!r}", self.current()
            )
        return rule()

    def parse_postfix(self) -> ASTNode:
        """postfix → primary '!'*"""
        node = self.parse_primary()
        while (bang := self.match("BANG")) is not None:
            node = Factorial(node, line=bang.line, col=bang.col)
        return node

    def parse_primary(self) -> ASTNode:
        """primary → NUMBER | IDENT | '(' expression ')'"""
        tok = self.current()
        if tok.type == "NUMBER":
            self.advance()
            return Number(float(tok.value), line=tok.line, col=tok.col)
        if tok.type == "IDENT":
            self.advance()
            return Variable(str(tok.value), line=tok.line, col=tok.col)
        if tok.type == "LPAREN":
            return self.parse_group()
        raise self.unexpected(tok)

    def parse_group(self) -> Group:
        open_tok = self.expect("LPAREN")
        inner = self.parse_expression()
        if self.match("RPAREN") is None:
            closing = self.current()
            if closing.type in ("END", "EOF"):
                raise ParseError(
                    f"Unbalanced parentheses: '(' at line {open_tok.line}, "
                    f"col {open_tok.col} is never closed",
                    closing,
                )
            raise self.unexpected(closing)
        return Group(inner, line=open_tok.line, col=open_tok.col)


def parse(tokens: Iterable[Token]) -> list[Statement]:
    """Parse `tokens` into statements. Shortcut for `Parser(tokens).parse()`."""
    return Parser(tokens).parse()


__all__ = ["Parser", "parse"]
