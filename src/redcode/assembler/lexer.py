"""
Redcode Line Lexer
==================

This module implements the lexer (tokenizer) for one logical line of
Redcode. Comment stripping and newline normalisation have already been
done by the preprocessing stage, so the lexer never sees ';' or line
breaks.

Token Types
-----------
- IDENTIFIER: Labels, mnemonics, modifiers, pseudo-ops
- NUMBER: Unsigned decimal digit run (a sign is always a unary operator)
- Operators: + - * / % ! && || < <= > >= == !=
- Punctuation: # $ @ { } , : . ( )
- UNKNOWN: A character that cannot begin any token
- EOF: End of line

Operators are matched longest-first, so ``a <= b`` always yields a single
LE token and never LT followed by a dangling '='.

Example
-------
>>> from redcode.assembler.lexer import Lexer
>>> for token in Lexer("loop: mov.ab #0, @ptr").tokenize():
...     print(token)
Token(IDENTIFIER, 'loop', 1:1)
Token(COLON, ':', 1:5)
Token(IDENTIFIER, 'mov', 1:7)
Token(DOT, '.', 1:10)
Token(IDENTIFIER, 'ab', 1:11)
Token(HASH, '#', 1:14)
Token(NUMBER, '0', 1:15)
Token(COMMA, ',', 1:16)
Token(AT, '@', 1:18)
Token(IDENTIFIER, 'ptr', 1:19)
Token(EOF, 1:22)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string

from redcode.errors import LexError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for a Redcode line."""

    EOF = auto()

    # Values
    IDENTIFIER = auto()
    NUMBER = auto()

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    STAR = auto()        # * (multiply or A-indirect mode)
    SLASH = auto()       # /
    PERCENT = auto()     # %

    # Logical operators
    BANG = auto()        # !
    AND = auto()         # &&
    OR = auto()          # ||

    # Comparison operators (< and > double as addressing modes)
    LT = auto()          # <
    LE = auto()          # <=
    GT = auto()          # >
    GE = auto()          # >=
    EQ = auto()          # ==
    NE = auto()          # !=

    # Punctuation
    HASH = auto()        # #
    DOLLAR = auto()      # $
    AT = auto()          # @
    LBRACE = auto()      # {
    RBRACE = auto()      # }
    COMMA = auto()       # ,
    COLON = auto()       # :
    DOT = auto()         # .
    LPAREN = auto()      # (
    RPAREN = auto()      # )

    UNKNOWN = auto()


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token of a source line.

    Attributes:
        type: The TokenType classification
        text: The exact source text of the token
        offset: 0-based start offset within the line
        line: Line number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    text: str
    offset: int
    line: int = 1
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.type == TokenType.EOF:
            return f"Token(EOF, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.text!r}, {self.line}:{self.column})"

    @property
    def column(self) -> int:
        """1-based column of the first character."""
        return self.offset + 1

    @property
    def end(self) -> int:
        """Offset just past the last character."""
        return self.offset + len(self.text)

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def touches(self, other: "Token") -> bool:
        """True if ``other`` starts exactly where this token ends."""
        return self.end == other.offset


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes one line of Redcode.

    Whitespace (space and tab) separates tokens and is discarded. A character
    that cannot begin any token is passed through as a one-character UNKNOWN
    token, unless ``strict`` is set, in which case LexError is raised at once.

    Usage:
        tokens = list(Lexer(line_text, filename, line_number).tokenize())
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    # Two-character operators, checked before single characters
    DOUBLE_CHAR_TOKENS = {
        "&&": TokenType.AND,
        "||": TokenType.OR,
        "<=": TokenType.LE,
        ">=": TokenType.GE,
        "==": TokenType.EQ,
        "!=": TokenType.NE,
    }

    SINGLE_CHAR_TOKENS = {
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
        "%": TokenType.PERCENT,
        "!": TokenType.BANG,
        "<": TokenType.LT,
        ">": TokenType.GT,
        "#": TokenType.HASH,
        "$": TokenType.DOLLAR,
        "@": TokenType.AT,
        "{": TokenType.LBRACE,
        "}": TokenType.RBRACE,
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        ".": TokenType.DOT,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        line_number: int = 1,
        strict: bool = False,
    ):
        """
        Initialize the lexer with one line of source.

        Args:
            source: The line to tokenize
            filename: Name of the source file (for error messages)
            line_number: Line number of this line in its file
            strict: Raise LexError on unknown characters
        """
        self.source = source
        self.filename = filename
        self.line_number = line_number
        self.strict = strict
        self._pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the line, always ending with EOF.

        Raises:
            LexError: In strict mode, on a character that cannot begin a token
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue
            yield self._scan_token()

        yield self._make_token(TokenType.EOF, "", self._pos)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        char = self.source[self._pos]
        self._pos += 1
        return char

    def _make_token(self, token_type: TokenType, text: str, start: int) -> Token:
        return Token(
            type=token_type,
            text=text,
            offset=start,
            line=self.line_number,
            filename=self.filename,
        )

    def _skip_whitespace(self) -> bool:
        """Skip spaces and tabs; True if anything was skipped."""
        skipped = False
        # '' in " \t" is True, so check for a character first
        while self._peek() and self._peek() in " \t":
            self._advance()
            skipped = True
        return skipped

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start = self._pos
        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_run(TokenType.IDENTIFIER, self.IDENT_CHARS, start)

        if char in string.digits:
            return self._scan_run(TokenType.NUMBER, string.digits, start)

        pair = char + self._peek(1)
        if pair in self.DOUBLE_CHAR_TOKENS:
            self._advance()
            self._advance()
            return self._make_token(self.DOUBLE_CHAR_TOKENS[pair], pair, start)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], char, start)

        self._advance()
        if self.strict:
            raise LexError(
                f"unexpected character {char!r}",
                SourceLocation(self.filename, self.line_number, start + 1),
                source_line=self.source,
            )
        return self._make_token(TokenType.UNKNOWN, char, start)

    def _scan_run(self, token_type: TokenType, allowed: str, start: int) -> Token:
        """Scan a maximal run of ``allowed`` characters."""
        while self._peek() and self._peek() in allowed:
            self._advance()
        return self._make_token(token_type, self.source[start:self._pos], start)


def tokenize_line(
    text: str,
    filename: str = "<input>",
    line_number: int = 1,
    strict: bool = False,
) -> list[Token]:
    """Convenience wrapper returning the full token list of one line."""
    return list(Lexer(text, filename, line_number, strict=strict).tokenize())
