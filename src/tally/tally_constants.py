"""
Token tables for the TALLY language.

Exports:
    token_hashmap: Maps each single-character lexeme to its canonical token type.
    keyword_tokens: Maps reserved words to their token types.
    additive_tokens, multiplicative_tokens: Binary operator tiers used by the parser.
"""

token_hashmap: dict[str, str] = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "^": "CARET",
    "(": "LPAREN",
    ")": "RPAREN",
    "=": "ASSIGN",
    "!": "BANG",
    ";": "END",
    "\n": "END",
}

keyword_tokens: dict[str, str] = {
    "print": "PRINT",
}

additive_tokens: tuple[str, ...] = ("PLUS", "MINUS")
multiplicative_tokens: tuple[str, ...] = ("STAR", "SLASH")
