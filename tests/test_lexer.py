# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the Redcode line tokenizer.
#
# Test coverage includes:
#   - Identifiers and numbers
#   - Longest-match operators (<= >= == != && ||)
#   - Addressing-mode punctuation
#   - Token positions (offset, column, adjacency)
#   - Unknown characters in lenient and strict mode
# =============================================================================

import pytest
from redcode.assembler.lexer import Lexer, Token, TokenType, tokenize_line
from redcode.errors import LexError


# =============================================================================
# Helper Function
# =============================================================================

def tokenize(source: str, line_number: int = 1) -> list:
    """
    Helper to tokenize a line and drop the trailing EOF token.

    Args:
        source: The Redcode line to tokenize
        line_number: Line number recorded in the tokens
    """
    lexer = Lexer(source, "<test>", line_number=line_number)
    return [t for t in lexer.tokenize() if t.type != TokenType.EOF]


def types(source: str) -> list:
    """Token types of a line, without EOF."""
    return [t.type for t in tokenize(source)]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_line(self):
        """Empty lines produce no meaningful tokens."""
        assert tokenize("") == []

    def test_whitespace_only(self):
        """Spaces and tabs are discarded."""
        assert tokenize("   \t   ") == []

    def test_eof_always_last(self):
        """The token stream always ends with EOF."""
        tokens = tokenize_line("mov 0, 1")
        assert tokens[-1].type == TokenType.EOF
        assert tokenize_line("")[0].type == TokenType.EOF

    def test_identifier(self):
        tokens = tokenize("loop")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].text == "loop"

    def test_identifier_with_underscore_and_digits(self):
        tokens = tokenize("_bomb_2")
        assert [t.text for t in tokens] == ["_bomb_2"]

    def test_identifier_is_maximal(self):
        """MOVE is one identifier, never MOV followed by E."""
        tokens = tokenize("MOVE")
        assert len(tokens) == 1
        assert tokens[0].text == "MOVE"

    def test_number(self):
        tokens = tokenize("8000")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].text == "8000"

    def test_negative_number_is_two_tokens(self):
        """A sign is always a separate operator token."""
        assert types("-5") == [TokenType.MINUS, TokenType.NUMBER]

    def test_number_followed_by_identifier(self):
        tokens = tokenize("12abc")
        assert [(t.type, t.text) for t in tokens] == [
            (TokenType.NUMBER, "12"),
            (TokenType.IDENTIFIER, "abc"),
        ]


# =============================================================================
# Operator Tests
# =============================================================================

class TestOperators:
    """Test operator recognition, including two-character operators."""

    @pytest.mark.parametrize("text,expected", [
        ("<=", TokenType.LE),
        (">=", TokenType.GE),
        ("==", TokenType.EQ),
        ("!=", TokenType.NE),
        ("&&", TokenType.AND),
        ("||", TokenType.OR),
    ])
    def test_double_char_operator(self, text, expected):
        tokens = tokenize(text)
        assert len(tokens) == 1
        assert tokens[0].type == expected
        assert tokens[0].text == text

    def test_le_is_single_token_between_operands(self):
        """'a<=b' is never LT followed by a stray '='."""
        assert types("a<=b") == [TokenType.IDENTIFIER, TokenType.LE, TokenType.IDENTIFIER]

    def test_single_char_operators(self):
        assert types("+ - * / % ! < >") == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.PERCENT, TokenType.BANG, TokenType.LT, TokenType.GT,
        ]

    def test_bang_before_identifier(self):
        assert types("!x") == [TokenType.BANG, TokenType.IDENTIFIER]

    def test_lone_ampersand_is_unknown(self):
        tokens = tokenize("a & b")
        assert tokens[1].type == TokenType.UNKNOWN
        assert tokens[1].text == "&"


# =============================================================================
# Punctuation Tests
# =============================================================================

class TestPunctuation:
    """Test addressing-mode markers and separators."""

    def test_mode_markers(self):
        assert types("# $ @ { } < > *") == [
            TokenType.HASH, TokenType.DOLLAR, TokenType.AT, TokenType.LBRACE,
            TokenType.RBRACE, TokenType.LT, TokenType.GT, TokenType.STAR,
        ]

    def test_full_instruction(self):
        assert types("loop: mov.ab #0, @ptr") == [
            TokenType.IDENTIFIER, TokenType.COLON,
            TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER,
            TokenType.HASH, TokenType.NUMBER, TokenType.COMMA,
            TokenType.AT, TokenType.IDENTIFIER,
        ]

    def test_parentheses(self):
        assert types("(1)") == [TokenType.LPAREN, TokenType.NUMBER, TokenType.RPAREN]


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:
    """Test offsets, columns and adjacency."""

    def test_offset_and_column(self):
        tokens = tokenize("  mov 0, 1")
        assert tokens[0].offset == 2
        assert tokens[0].column == 3
        assert tokens[0].end == 5

    def test_line_number_recorded(self):
        tokens = tokenize("dat 0", line_number=42)
        assert all(t.line == 42 for t in tokens)
        assert tokens[0].location.line == 42
        assert tokens[0].location.filename == "<test>"

    def test_touches_adjacent(self):
        tokens = tokenize("mov.i")
        assert tokens[0].touches(tokens[1])
        assert tokens[1].touches(tokens[2])

    def test_touches_with_space(self):
        tokens = tokenize("mov .i")
        assert not tokens[0].touches(tokens[1])

    def test_repr(self):
        token = Token(TokenType.NUMBER, "7", 0, line=3)
        assert repr(token) == "Token(NUMBER, '7', 3:1)"


# =============================================================================
# Unknown Character Tests
# =============================================================================

class TestUnknownCharacters:
    """Test handling of characters that cannot begin a token."""

    def test_unknown_passed_through(self):
        tokens = tokenize("x ~ 1")
        assert tokens[1].type == TokenType.UNKNOWN
        assert tokens[1].text == "~"
        assert tokens[2].type == TokenType.NUMBER

    def test_non_ascii_is_unknown(self):
        tokens = tokenize("é")
        assert tokens[0].type == TokenType.UNKNOWN

    def test_strict_mode_raises(self):
        with pytest.raises(LexError) as exc_info:
            tokenize_line("x ~ 1", "<test>", 5, strict=True)
        assert exc_info.value.location.line == 5
        assert exc_info.value.location.column == 3
        assert exc_info.value.kind == "LexError"
