"""
Redcode Expressions
===================

This module implements the expression language used in Redcode operand
fields: the AST, a precedence-climbing parser, an evaluator and a pretty
printer.

Expression Grammar
------------------
Precedence from lowest to highest binding:

1. Boolean: && ||
2. Compare: <= < >= > == !=
3. Sum: + -
4. Product: * / %
5. Unary: - + ! (prefix, repeatable: --3 and !!x are valid)
6. Atom: number, label, or ( expression )

All binary levels are left-associative. A parenthesized sub-expression
re-enters the grammar at the boolean level, so ``(a && b) + 1`` is
accepted even though arithmetic fields normally only use arithmetic
operators.

Numbers are unsigned digit runs; ``-5`` is the unary minus applied to 5.

AST
---
The AST is a tagged union of four frozen dataclasses:

    Number(value)                    literal
    LabelRef(name)                   reference to a label or EQU name
    UnaryOp(operator, operand)       prefix operator
    BinaryOp(operator, left, right)  infix operator

Nodes compare structurally; source locations are carried for error
reporting but ignored by equality, so re-parsing pretty-printed output
gives equal trees.

Example Usage
-------------
>>> from redcode.assembler.expressions import (
...     ExpressionEvaluator, format_expression, parse_expression,
... )
>>> tree = parse_expression("2 + 3 * step")
>>> evaluator = ExpressionEvaluator({"step": 4})
>>> evaluator.evaluate(tree)
14
>>> format_expression(tree)
'2 + 3 * step'
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from redcode.errors import (
    ExpectedExpressionError,
    ExpressionError,
    LexError,
    SourceLocation,
    UndefinedLabelError,
    UnterminatedExpressionError,
)
from redcode.assembler.lexer import Token, TokenType, tokenize_line


# =============================================================================
# Expression AST Nodes
# =============================================================================

@dataclass(frozen=True)
class Number:
    """Integer literal."""
    value: int
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class LabelRef:
    """Reference to a label or an EQU-bound name."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class UnaryOp:
    """Prefix operator: '-', '+' or '!'."""
    operator: str
    operand: "Expression"
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
    """Infix operator applied to two sub-expressions."""
    operator: str
    left: "Expression"
    right: "Expression"
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


Expression = Union[Number, LabelRef, UnaryOp, BinaryOp]


# =============================================================================
# Operator Tables
# =============================================================================

BOOLEAN_OPERATORS = frozenset({TokenType.AND, TokenType.OR})
COMPARE_OPERATORS = frozenset({
    TokenType.LE, TokenType.LT, TokenType.GE, TokenType.GT, TokenType.EQ, TokenType.NE,
})
SUM_OPERATORS = frozenset({TokenType.PLUS, TokenType.MINUS})
PRODUCT_OPERATORS = frozenset({TokenType.STAR, TokenType.SLASH, TokenType.PERCENT})
UNARY_OPERATORS = frozenset({TokenType.MINUS, TokenType.PLUS, TokenType.BANG})

# Binding strength of each binary operator (higher binds tighter)
PRECEDENCE = {
    "&&": 1, "||": 1,
    "<=": 2, "<": 2, ">=": 2, ">": 2, "==": 2, "!=": 2,
    "+": 3, "-": 3,
    "*": 4, "/": 4, "%": 4,
}


# =============================================================================
# Expression Parser
# =============================================================================

class ExpressionParser:
    """
    Precedence-climbing parser over a token list.

    The parser starts at ``start`` and stops at the first token that cannot
    continue the expression; ``pos`` then points at that token so the caller
    (the instruction parser) can carry on from there.

    Usage:
        parser = ExpressionParser(tokens, start)
        tree = parser.parse()
        next_position = parser.pos
    """

    def __init__(
        self,
        tokens: list[Token],
        start: int = 0,
        source_line: Optional[str] = None,
    ):
        """
        Args:
            tokens: Token list, terminated by an EOF token
            start: Index of the first token of the expression
            source_line: Line text, attached to errors for context
        """
        self._tokens = tokens
        self.pos = start
        self._source_line = source_line

    def parse(self) -> Expression:
        """
        Parse one expression starting at the current position.

        Raises:
            ExpectedExpressionError: No operand where one is required
            UnterminatedExpressionError: '(' without matching ')'
            LexError: Unknown character where an operand is expected
        """
        return self._parse_boolean()

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self.pos]

    def _advance(self) -> Token:
        token = self._current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _match(self, types: frozenset) -> Optional[Token]:
        if self._current().type in types:
            return self._advance()
        return None

    # =========================================================================
    # Precedence Levels
    # =========================================================================

    def _fold_binary(
        self,
        operators: frozenset,
        operand: Callable[[], Expression],
    ) -> Expression:
        """Parse ``operand (op operand)*`` into a left-associative chain."""
        left = operand()
        while (op := self._match(operators)) is not None:
            right = operand()
            left = BinaryOp(op.text, left, right, op.location)
        return left

    def _parse_boolean(self) -> Expression:
        return self._fold_binary(BOOLEAN_OPERATORS, self._parse_compare)

    def _parse_compare(self) -> Expression:
        return self._fold_binary(COMPARE_OPERATORS, self._parse_sum)

    def _parse_sum(self) -> Expression:
        return self._fold_binary(SUM_OPERATORS, self._parse_product)

    def _parse_product(self) -> Expression:
        return self._fold_binary(PRODUCT_OPERATORS, self._parse_unary)

    def _parse_unary(self) -> Expression:
        """Zero or more prefix operators, then one atom, nested right."""
        prefixes: list[Token] = []
        while (op := self._match(UNARY_OPERATORS)) is not None:
            prefixes.append(op)

        node = self._parse_atom()
        for op in reversed(prefixes):
            node = UnaryOp(op.text, node, op.location)
        return node

    def _parse_atom(self) -> Expression:
        tok = self._current()

        if tok.type == TokenType.NUMBER:
            self._advance()
            try:
                value = int(tok.text)
            except ValueError:
                raise ExpectedExpressionError(
                    f"number too long ({len(tok.text)} digits)",
                    tok.location,
                    source_line=self._source_line,
                ) from None
            return Number(value, tok.location)

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return LabelRef(tok.text, tok.location)

        if tok.type == TokenType.LPAREN:
            self._advance()
            inner = self._parse_boolean()
            if self._current().type != TokenType.RPAREN:
                found = self._describe(self._current())
                raise UnterminatedExpressionError(
                    f"expected ')' to close expression, found {found}",
                    tok.location,
                    hint="unmatched '(' opened here",
                    source_line=self._source_line,
                )
            self._advance()
            return inner

        if tok.type == TokenType.UNKNOWN:
            raise LexError(
                f"unexpected character {tok.text!r}",
                tok.location,
                source_line=self._source_line,
            )

        raise ExpectedExpressionError(
            f"expected expression, found {self._describe(tok)}",
            tok.location,
            source_line=self._source_line,
        )

    @staticmethod
    def _describe(tok: Token) -> str:
        if tok.type == TokenType.EOF:
            return "end of line"
        return f"'{tok.text}'"


def parse_expression(
    text: str,
    filename: str = "<input>",
    line_number: int = 1,
) -> Expression:
    """
    Parse a complete string as one expression.

    Unlike ExpressionParser, trailing tokens are an error here.

    Raises:
        ExpectedExpressionError: Empty input or tokens left after the expression
        UnterminatedExpressionError: '(' without matching ')'
        LexError: Unknown character
    """
    tokens = tokenize_line(text, filename, line_number)
    parser = ExpressionParser(tokens, 0, source_line=text)
    tree = parser.parse()

    rest = tokens[parser.pos]
    if rest.type != TokenType.EOF:
        if rest.type == TokenType.UNKNOWN:
            raise LexError(f"unexpected character {rest.text!r}", rest.location, source_line=text)
        raise ExpectedExpressionError(
            f"unexpected '{rest.text}' after expression",
            rest.location,
            source_line=text,
        )
    return tree


# =============================================================================
# Tree Utilities
# =============================================================================

def substitute(node: Expression, replace: Callable[[LabelRef], Expression]) -> Expression:
    """
    Return a copy of ``node`` with every LabelRef replaced by ``replace(ref)``.

    The original tree is not modified.
    """
    if isinstance(node, LabelRef):
        return replace(node)
    if isinstance(node, UnaryOp):
        return UnaryOp(node.operator, substitute(node.operand, replace), node.location)
    if isinstance(node, BinaryOp):
        return BinaryOp(
            node.operator,
            substitute(node.left, replace),
            substitute(node.right, replace),
            node.location,
        )
    return node


# =============================================================================
# Expression Evaluator
# =============================================================================

def _truncating_div(left: int, right: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


class ExpressionEvaluator:
    """
    Evaluates expression trees to integers.

    Label references are looked up in the evaluator's symbol map; the
    resolver normally substitutes them before evaluation, so the map is
    mostly used for constants and tests.

    Arithmetic follows the MARS convention: '/' and '%' truncate toward
    zero, and comparisons and logical operators yield 1 or 0.
    """

    def __init__(self, symbols: Optional[dict[str, int]] = None):
        self._symbols: dict[str, int] = dict(symbols or {})

    def evaluate(self, node: Expression) -> int:
        """
        Evaluate ``node``.

        Raises:
            UndefinedLabelError: Label not in the symbol map
            ExpressionError: Division or modulo by zero
        """
        if isinstance(node, Number):
            return node.value

        if isinstance(node, LabelRef):
            if node.name in self._symbols:
                return self._symbols[node.name]
            raise UndefinedLabelError(
                node.name,
                location=node.location,
                similar_names=find_similar_names(node.name, self._symbols),
            )

        if isinstance(node, UnaryOp):
            value = self.evaluate(node.operand)
            if node.operator == "-":
                return -value
            if node.operator == "!":
                return 1 if value == 0 else 0
            return value

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        return self._apply(node, left, right)

    def _apply(self, node: BinaryOp, left: int, right: int) -> int:
        op = node.operator
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op in ("/", "%"):
            if right == 0:
                word = "division" if op == "/" else "modulo"
                raise ExpressionError(f"{word} by zero", node.location)
            quotient = _truncating_div(left, right)
            return quotient if op == "/" else left - right * quotient
        if op == "&&":
            return 1 if left != 0 and right != 0 else 0
        if op == "||":
            return 1 if left != 0 or right != 0 else 0
        if op == "<":
            return 1 if left < right else 0
        if op == "<=":
            return 1 if left <= right else 0
        if op == ">":
            return 1 if left > right else 0
        if op == ">=":
            return 1 if left >= right else 0
        if op == "==":
            return 1 if left == right else 0
        if op == "!=":
            return 1 if left != right else 0
        raise ExpressionError(f"unknown operator '{op}'", node.location)


# =============================================================================
# Pretty Printing
# =============================================================================

def format_expression(node: Expression) -> str:
    """
    Render ``node`` as source text with the fewest parentheses needed.

    Parsing the result gives a tree equal to ``node``.
    """
    if isinstance(node, Number):
        return str(node.value)

    if isinstance(node, LabelRef):
        return node.name

    if isinstance(node, UnaryOp):
        operand = format_expression(node.operand)
        if isinstance(node.operand, BinaryOp):
            operand = f"({operand})"
        return f"{node.operator}{operand}"

    precedence = PRECEDENCE[node.operator]
    left = format_expression(node.left)
    right = format_expression(node.right)
    if isinstance(node.left, BinaryOp) and PRECEDENCE[node.left.operator] < precedence:
        left = f"({left})"
    # Right operands of equal precedence need grouping: a - (b - c)
    if isinstance(node.right, BinaryOp) and PRECEDENCE[node.right.operator] <= precedence:
        right = f"({right})"
    return f"{left} {node.operator} {right}"


# =============================================================================
# Similar-Name Hints
# =============================================================================

def find_similar_names(name: str, candidates) -> list[str]:
    """
    Find names similar to ``name`` for "did you mean" hints.

    Uses a simple edit distance heuristic and returns at most 3 names.
    """
    name_lower = name.lower()
    similar = []

    for candidate in candidates:
        candidate_lower = candidate.lower()
        if (
            candidate_lower == name_lower or
            abs(len(candidate) - len(name)) <= 1 and
            _edit_distance(name_lower, candidate_lower) <= 2
        ):
            similar.append(candidate)

    return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min((
                    distances[j],
                    distances[j + 1],
                    new_distances[-1]
                )))
        distances = new_distances

    return distances[-1]
