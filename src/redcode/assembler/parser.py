"""
Redcode Line Parser
===================

This module turns one logical line of Redcode into a SourceLine: zero or
more label declarations followed by at most one statement.

Statement Types
---------------
1. **Instruction**: opcode, optional modifier, one or two fields
   ```redcode
   loop    mov.i   #0, @ptr
           jmp     loop
   ```

2. **EquBinding**: binds the line's label to the verbatim rest of the line
   ```redcode
   step    EQU     4 * 365
   ```

3. **OriginDirective**: start offset of the program
   ```redcode
           ORG     start
           END     start
   ```

A line holding only labels carries no statement; those labels attach to
the next instruction (see the resolver).

Label or Opcode?
----------------
A leading identifier is classified with bounded lookahead:

| Form              | Result                                   |
|-------------------|------------------------------------------|
| ``name:``         | label declaration                        |
| reserved word     | start of the statement (mnemonics win)   |
| other identifier  | label declaration without colon          |

Reserved words are the 19 mnemonics plus EQU, ORG and END, matched
case-insensitively. The tokenizer only ever produces whole identifiers,
so ``MOVE`` is an ordinary identifier and never ``MOV`` followed by ``E``.
Declaring a reserved word with the explicit colon form (``mov:``) raises
AmbiguousLabelOpcodeError.

Addressing Modes
----------------
| Marker | Mode               |
|--------|--------------------|
| #      | Immediate          |
| $      | Direct (default)   |
| *      | A-field indirect   |
| @      | B-field indirect   |
| {      | A-field predecrement |
| <      | B-field predecrement |
| }      | A-field postincrement |
| >      | B-field postincrement |
"""

from dataclasses import dataclass, field
from typing import Optional, Union
import logging

from redcode.errors import (
    AmbiguousLabelOpcodeError,
    InvalidModifierError,
    LexError,
    MissingFieldError,
    SourceLocation,
    UnknownOpcodeError,
    UnterminatedExpressionError,
)
from redcode.assembler.lexer import Token, TokenType, tokenize_line
from redcode.assembler.expressions import (
    Expression,
    ExpressionParser,
    format_expression,
)
from redcode.assembler.opcodes import (
    AddressMode,
    Modifier,
    Opcode,
    is_reserved,
)

logger = logging.getLogger(__name__)


# Tokens that can open a field as an addressing-mode marker
MODE_TOKENS = frozenset({
    TokenType.HASH,
    TokenType.DOLLAR,
    TokenType.STAR,
    TokenType.AT,
    TokenType.LBRACE,
    TokenType.LT,
    TokenType.RBRACE,
    TokenType.GT,
})

VALID_MODIFIERS_HINT = "valid modifiers are A, B, AB, BA, F, X and I"


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass(frozen=True)
class LabelDecl:
    """A label declared on a line."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True)
class Field:
    """
    One instruction operand.

    Attributes:
        mode: Addressing mode (DIRECT when no marker was written)
        expression: The operand expression
    """
    mode: AddressMode
    expression: Expression

    def to_source(self) -> str:
        marker = "" if self.mode == AddressMode.DIRECT else self.mode.value
        return f"{marker}{format_expression(self.expression)}"


@dataclass(frozen=True)
class Instruction:
    """
    A parsed instruction.

    Attributes:
        opcode: The operation
        modifier: Explicit modifier, or None when the source omits it
        a_field: First operand
        b_field: Second operand, if written
    """
    opcode: Opcode
    modifier: Optional[Modifier]
    a_field: Field
    b_field: Optional[Field] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def to_source(self) -> str:
        operation = self.opcode.value
        if self.modifier is not None:
            operation += f".{self.modifier.value}"
        fields = self.a_field.to_source()
        if self.b_field is not None:
            fields += f", {self.b_field.to_source()}"
        return f"{operation} {fields}"


@dataclass(frozen=True)
class EquBinding:
    """
    ``label EQU text``: binds ``label`` to the raw replacement text.

    The text is stored unparsed; the resolver parses it as an expression
    when a field refers to the label.
    """
    label: str
    text: str
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def to_source(self) -> str:
        return f"EQU {self.text}"


@dataclass(frozen=True)
class OriginDirective:
    """
    ``ORG expr`` or ``END [expr]``: where execution starts.

    Attributes:
        keyword: "ORG" or "END"
        expression: Start offset expression (None for a bare END)
    """
    keyword: str
    expression: Optional[Expression] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def to_source(self) -> str:
        if self.expression is None:
            return self.keyword
        return f"{self.keyword} {format_expression(self.expression)}"


Statement = Union[Instruction, EquBinding, OriginDirective]


@dataclass
class SourceLine:
    """
    Parse result of one logical line.

    Attributes:
        line_number: Line number in the source file (1-indexed)
        text: The line text as given to the parser
        labels: Labels declared on the line, in order
        statement: The statement, or None for a label-only or blank line
        trailing_text: Text after the last field that the grammar ignored
    """
    line_number: int
    text: str
    labels: list[LabelDecl] = field(default_factory=list)
    statement: Optional[Statement] = None
    trailing_text: Optional[str] = None

    @property
    def instruction(self) -> Optional[Instruction]:
        """The statement if it is an instruction, else None."""
        return self.statement if isinstance(self.statement, Instruction) else None

    def is_blank(self) -> bool:
        return not self.labels and self.statement is None

    def to_source(self) -> str:
        """Re-serialize the line in canonical form."""
        parts = [f"{label.name}:" for label in self.labels]
        if self.statement is not None:
            parts.append(self.statement.to_source())
        return " ".join(parts)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses Redcode lines into SourceLine objects.

    The parser is stateless between lines: each call to ``parse_line``
    works on that line only. Cross-line concerns (labels naming the next
    instruction, forward references) belong to the resolver.

    Usage:
        parser = Parser("warrior.red")
        line = parser.parse_line("loop: mov 0, 1", line_number=3)
    """

    def __init__(self, filename: str = "<input>", strict: bool = False):
        """
        Args:
            filename: Source filename for error reporting
            strict: Raise LexError while tokenizing unknown characters
        """
        self._filename = filename
        self._strict = strict
        self._tokens: list[Token] = []
        self._pos = 0
        self._text = ""

    def parse_line(self, text: str, line_number: int = 1) -> SourceLine:
        """
        Parse one line.

        Raises:
            RedcodeSyntaxError: Any syntax error on the line
        """
        self._text = text
        self._tokens = tokenize_line(text, self._filename, line_number, strict=self._strict)
        self._pos = 0

        labels = self._parse_labels()
        statement = None
        if not self._check(TokenType.EOF):
            statement = self._parse_statement(labels)

        trailing = None
        if self._check(TokenType.RPAREN):
            raise UnterminatedExpressionError(
                "unmatched ')'",
                self._current().location,
                source_line=text,
            )
        if not self._check(TokenType.EOF):
            trailing = text[self._current().offset:].rstrip()
            logger.debug(f"line {line_number}: ignoring trailing text {trailing!r}")

        return SourceLine(line_number, text, labels, statement, trailing)

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        pos = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _describe(self, tok: Token) -> str:
        if tok.type == TokenType.EOF:
            return "end of line"
        return f"'{tok.text}'"

    # =========================================================================
    # Line Classification
    # =========================================================================

    def _parse_labels(self) -> list[LabelDecl]:
        """Consume leading label declarations, stopping at a reserved word."""
        labels: list[LabelDecl] = []

        while self._check(TokenType.IDENTIFIER):
            tok = self._current()

            if self._peek(1).type == TokenType.COLON:
                if is_reserved(tok.text):
                    raise AmbiguousLabelOpcodeError(tok.text, tok.location, self._text)
                self._advance()
                self._advance()
                labels.append(LabelDecl(tok.text, tok.location))
                continue

            if is_reserved(tok.text):
                break

            self._advance()
            labels.append(LabelDecl(tok.text, tok.location))

        return labels

    def _parse_statement(self, labels: list[LabelDecl]) -> Statement:
        tok = self._current()

        if tok.type == TokenType.UNKNOWN:
            raise LexError(f"unexpected character {tok.text!r}", tok.location, source_line=self._text)

        if tok.type != TokenType.IDENTIFIER:
            hint = None
            if labels:
                hint = f"label '{labels[-1].name}' must be followed by an opcode"
            raise UnknownOpcodeError(
                f"expected opcode, found {self._describe(tok)}",
                tok.location,
                hint=hint,
                source_line=self._text,
            )

        word = tok.text.upper()
        if word == "EQU":
            return self._parse_equ(labels)
        if word in ("ORG", "END"):
            return self._parse_origin()
        return self._parse_instruction()

    # =========================================================================
    # Instruction Parsing
    # =========================================================================

    def _parse_instruction(self) -> Instruction:
        op_tok = self._advance()
        opcode = Opcode.lookup(op_tok.text)
        if opcode is None:
            raise UnknownOpcodeError(
                f"unknown opcode '{op_tok.text}'", op_tok.location, source_line=self._text
            )

        modifier = self._parse_modifier(op_tok)

        if self._check(TokenType.EOF, TokenType.COMMA):
            raise MissingFieldError(
                f"'{opcode.value}' requires an operand field",
                self._current().location,
                source_line=self._text,
            )

        a_field = self._parse_field()
        b_field = None
        if self._match(TokenType.COMMA):
            if self._check(TokenType.EOF, TokenType.COMMA):
                raise MissingFieldError(
                    "expected a second field after ','",
                    self._current().location,
                    source_line=self._text,
                )
            b_field = self._parse_field()

        return Instruction(opcode, modifier, a_field, b_field, op_tok.location)

    def _parse_modifier(self, op_tok: Token) -> Optional[Modifier]:
        """Parse ``.MOD`` written directly after the opcode, if present."""
        if not self._check(TokenType.DOT):
            return None

        dot = self._advance()
        if not op_tok.touches(dot):
            raise InvalidModifierError(
                "modifier must follow the opcode directly",
                dot.location,
                hint=f"write '{op_tok.text}.<modifier>' without spaces",
                source_line=self._text,
            )

        mod_tok = self._current()
        if mod_tok.type != TokenType.IDENTIFIER or not dot.touches(mod_tok):
            raise InvalidModifierError(
                f"expected modifier after '.', found {self._describe(mod_tok)}",
                mod_tok.location,
                hint=VALID_MODIFIERS_HINT,
                source_line=self._text,
            )

        modifier = Modifier.lookup(mod_tok.text)
        if modifier is None:
            raise InvalidModifierError(
                f"invalid modifier '{mod_tok.text}'",
                mod_tok.location,
                hint=VALID_MODIFIERS_HINT,
                source_line=self._text,
            )
        self._advance()
        return modifier

    def _parse_field(self) -> Field:
        """Optional addressing-mode marker, then exactly one expression."""
        mode = AddressMode.DIRECT
        if self._check(*MODE_TOKENS):
            mode = AddressMode.from_marker(self._advance().text)
        return Field(mode, self._parse_expression())

    def _parse_expression(self) -> Expression:
        parser = ExpressionParser(self._tokens, self._pos, source_line=self._text)
        expression = parser.parse()
        self._pos = parser.pos
        return expression

    # =========================================================================
    # Pseudo-op Parsing
    # =========================================================================

    def _parse_equ(self, labels: list[LabelDecl]) -> EquBinding:
        equ_tok = self._advance()
        if not labels:
            raise MissingFieldError(
                "EQU requires a label to bind",
                equ_tok.location,
                hint="write 'name EQU value'",
                source_line=self._text,
            )

        text = self._text[equ_tok.end:].strip()
        if not text:
            raise MissingFieldError(
                f"EQU for '{labels[-1].name}' has no value",
                equ_tok.location,
                source_line=self._text,
            )

        # The rest of the line belongs to the binding
        self._pos = len(self._tokens) - 1
        return EquBinding(labels[-1].name, text, equ_tok.location)

    def _parse_origin(self) -> OriginDirective:
        kw_tok = self._advance()
        keyword = kw_tok.text.upper()

        if self._check(TokenType.EOF):
            if keyword == "ORG":
                raise MissingFieldError(
                    "ORG requires a start expression",
                    self._current().location,
                    source_line=self._text,
                )
            return OriginDirective(keyword, None, kw_tok.location)

        return OriginDirective(keyword, self._parse_expression(), kw_tok.location)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_line(text: str, line_number: int = 1, filename: str = "<input>") -> SourceLine:
    """Parse a single line with a fresh Parser."""
    return Parser(filename).parse_line(text, line_number)
