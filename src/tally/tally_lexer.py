"""
Lexical analyzer for the TALLY language.

This module converts raw source text into a lazy stream of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens, one at a time.

Features:
    - Skips spaces, tabs and single-line comments (`#`)
    - Emits an explicit END token for `;` and newlines
    - Recognizes:
        * Numbers (digits with at most one embedded `.`), valued as floats
        * Identifiers, and the `print` keyword when it is a whole word
        * Single-character operators and punctuation

End of input is signalled by `next_token()` returning None. Malformed input
raises `LexError`; the two outcomes are never mixed.

Example:
    >>> lexer = Lexer(CharacterStream("print 42"))
    >>> lexer.next_token()
    Token(PRINT, print)
    >>> lexer.next_token()
    Token(NUMBER, 42.0)
    >>> lexer.next_token() is None
    True

Exports:
    - CharacterStream
    - Token
    - Lexer
    - lex
"""

import logging
from collections.abc import Iterator
from typing import Any

from tally.tally_constants import keyword_tokens, token_hashmap
from tally.tally_errors import LexError

logger = logging.getLogger(__name__)


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" if out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the TALLY language.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'NUMBER', 'END').
        value (str | float): The lexeme, or the parsed float for NUMBER tokens.
        line (int): The 1-based line number where the token appears.
        col (int): The 1-based column number where the token starts.
        length (int): Number of source characters the token spans.
    """

    def __init__(
        self,
        type_: str,
        value: str | float,
        line: int = 0,
        col: int = 0,
        length: int | None = None,
    ):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col
        self.length = len(str(value)) if length is None else length

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for the TALLY language.

    The Lexer pulls characters from a CharacterStream and produces tokens on
    demand. It is forward-only; to start over, build a new Lexer over the same
    text. Iterating a Lexer yields tokens until the input is exhausted.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            if tok is None:
                return
            yield tok

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips blanks and comments, stopping at newlines (they terminate statements)."""
        while not self.stream.end_of_file():
            if self.peek() in " \t\r":
                self.advance()
            elif self.peek() == "#":
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances to the end of a comment line, leaving the newline in place."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def read_number(self, line: int, col: int) -> Token:
        """Reads a run of digits with at most one embedded dot.

        Raises:
            LexError: On a second dot or a dot with no digit after it.
        """
        num = ""
        has_dot = False
        while not self.stream.end_of_file() and (
            self.peek().isdigit() or self.peek() == "."
        ):
            if self.peek() == ".":
                if has_dot:
                    raise LexError(f"Malformed number '{num}.'", line, col)
                if not self.peek(1).isdigit():
                    raise LexError(f"Malformed number '{num}.'", line, col)
                has_dot = True
            num += self.advance()
        try:
            value = float(num)
        except ValueError:
            raise LexError(f"Malformed number '{num}'", line, col) from None
        return Token("NUMBER", value, line, col, length=len(num))

    def read_word(self, line: int, col: int) -> Token:
        """Reads an identifier; the whole word `print` becomes the PRINT keyword."""
        ident = ""
        while not self.stream.end_of_file() and (
            self.peek().isalnum() or self.peek() == "_"
        ):
            ident += self.advance()
        if ident in keyword_tokens:
            return Token(keyword_tokens[ident], ident, line, col)
        return Token("IDENT", ident, line, col)

    def next_token(self) -> Token | None:
        """Consumes and returns the next Token, or None once the input is exhausted.

        Raises:
            LexError: If a malformed number or an unrecognized character is found.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return None

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        if ch.isdigit():
            token = self.read_number(line, col)
        elif ch.isalpha() or ch == "_":
            token = self.read_word(line, col)
        elif ch in token_hashmap:
            token = Token(token_hashmap[ch], self.advance(), line, col)
        else:
            raise LexError(f"Unexpected character {ch!r}", line, col)

        logger.debug("token %r at %d:%d", token, line, col)
        return token


def lex(source: str) -> Iterator[Token]:
    """Lazily tokenizes `source`, yielding tokens until the end of input."""
    return iter(Lexer(CharacterStream(source)))


__all__ = ["CharacterStream", "Lexer", "Token", "lex", "token_hashmap"]
