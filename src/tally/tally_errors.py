"""
Error types raised by the TALLY pipeline.

Classes:
    TallyError: Base class carrying a message and an optional source position.
    LexError: Malformed numeric literal or unexpected character.
    ParseError: Unexpected token, unbalanced parentheses, or missing operand.
    EvalError: Undefined variable or invalid factorial operand.

Every stage raises on the first problem it finds; nothing is aggregated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tally.tally_lexer import Token


class TallyError(Exception):
    """Base class for all TALLY language errors.

    Attributes:
        message (str): Human-readable description without position info.
        line (int): 1-based source line, or 0 when unknown.
        col (int): 1-based source column, or 0 when unknown.
    """

    def __init__(self, message: str, line: int = 0, col: int = 0) -> None:
        self.message = message
        self.line = line
        self.col = col
        super().__init__(self._format())

    def _format(self) -> str:
        if self.line:
            return f"{self.message} at line {self.line}, col {self.col}"
        return self.message


class LexError(TallyError):
    """Raised when source text cannot be split into tokens."""


class ParseError(TallyError):
    """Raised when the token stream does not match the grammar.

    Attributes:
        token (Token | None): The offending token, or None at end of input.
    """

    def __init__(self, message: str, token: Token | None = None) -> None:
        self.token = token
        line = token.line if token is not None else 0
        col = token.col if token is not None else 0
        super().__init__(message, line, col)


class EvalError(TallyError):
    """Raised when a statement cannot be evaluated."""


__all__ = ["EvalError", "LexError", "ParseError", "TallyError"]
