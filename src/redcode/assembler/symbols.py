"""
Symbol Table and Resolver
=========================

Label resolution runs in two passes over the parsed lines.

Pass 1: Symbol Collection
-------------------------
Walks every line in order, keeping a list of pending labels:

- Labels declared on a line are appended to the pending list.
- An instruction binds every pending label to its own index (the count of
  instruction lines before it), then clears the list. A label alone on a
  line therefore names the next instruction.
- An EQU binds every pending label, its own included, to the verbatim
  replacement text, then clears the list.
- ORG and END leave pending labels alone.
- Labels still pending at the end of the file bind to the instruction
  count (one past the last instruction).

Binding a name twice is allowed only when both bindings are identical.

Pass 2: Reference Resolution
----------------------------
Each field expression is rewritten with every label reference replaced:

- A label becomes the relative offset ``label_index - instruction_index``.
- An EQU name is replaced by its parsed text, resolved recursively in the
  context of the referring instruction. A name met again while resolving
  its own text is a CircularEquError.

Every undefined reference in the file is reported, not just the first.
The rewritten tree is evaluated and folded into the signed core range
``(-core_size/2, core_size/2]``.

Pass 1 always completes before pass 2 starts, so forward references need
no special handling.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional
import logging

from redcode.config import DEFAULT_CORE_SIZE
from redcode.errors import (
    AssemblerError,
    CircularEquError,
    DuplicateLabelError,
    ErrorCollector,
    MissingFieldError,
    RedcodeSyntaxError,
    SourceLocation,
    UndefinedLabelError,
)
from redcode.assembler.expressions import (
    Expression,
    ExpressionEvaluator,
    LabelRef,
    Number,
    find_similar_names,
    parse_expression,
    substitute,
)
from redcode.assembler.opcodes import (
    AddressMode,
    Opcode,
    default_modifier,
    requires_two_operands,
)
from redcode.assembler.parser import (
    EquBinding,
    Instruction,
    OriginDirective,
    SourceLine,
)
from redcode.assembler.program import ResolvedInstruction

logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolKind(Enum):
    LABEL = "LABEL"
    EQU = "EQU"


@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Symbol name, case-sensitive
        kind: LABEL (bound to an instruction index) or EQU (bound to text)
        index: Instruction index for labels
        text: Replacement text for EQU names
        location: Where the symbol was declared (not part of equality)
    """
    name: str
    kind: SymbolKind
    index: Optional[int] = None
    text: Optional[str] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def value(self) -> str:
        """The binding, as shown in symbol listings."""
        return str(self.index) if self.kind == SymbolKind.LABEL else str(self.text)


class SymbolTable:
    """
    Maps names to their binding.

    Symbols are kept in declaration order.
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}

    def declare_label(
        self,
        name: str,
        index: int,
        location: Optional[SourceLocation] = None,
    ) -> Symbol:
        """
        Bind ``name`` to an instruction index.

        Raises:
            DuplicateLabelError: ``name`` already has a different binding
        """
        return self._define(Symbol(name, SymbolKind.LABEL, index=index, location=location))

    def bind_equ(
        self,
        name: str,
        text: str,
        location: Optional[SourceLocation] = None,
    ) -> Symbol:
        """
        Bind ``name`` to EQU replacement text.

        Raises:
            DuplicateLabelError: ``name`` already has a different binding
        """
        return self._define(Symbol(name, SymbolKind.EQU, text=text, location=location))

    def _define(self, symbol: Symbol) -> Symbol:
        existing = self._symbols.get(symbol.name)
        if existing is None:
            self._symbols[symbol.name] = symbol
            return symbol

        if existing == symbol:
            logger.debug(f"'{symbol.name}' redeclared with the same binding")
            return existing

        raise DuplicateLabelError(symbol.name, symbol.location, existing.location)

    def lookup(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def labels(self) -> dict[str, int]:
        """Instruction index of every LABEL symbol."""
        return {
            name: sym.index
            for name, sym in self._symbols.items()
            if sym.kind == SymbolKind.LABEL
        }

    def similar(self, name: str) -> list[str]:
        """Declared names close to ``name``, for "did you mean" hints."""
        return find_similar_names(name, self._symbols)

    def format_listing(self) -> str:
        """Render the table as aligned text, one symbol per line."""
        if not self._symbols:
            return ""
        width = max(len(name) for name in self._symbols)
        lines = [
            f"{sym.name:<{width}}  {sym.kind.value:<5}  {sym.value}"
            for sym in self._symbols.values()
        ]
        return "\n".join(lines)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())


# =============================================================================
# Resolver
# =============================================================================

class Resolver:
    """
    Resolves the parsed lines of one file into a ResolvedInstruction list.

    Errors are recorded in the collector and resolution carries on, so one
    run reports every problem in the file. Instructions with errors are
    left out of the result; callers must check the collector before using
    it.

    Usage:
        resolver = Resolver(collector=collector)
        resolver.collect(lines)
        instructions = resolver.resolve()
        start = resolver.resolve_start()
    """

    def __init__(
        self,
        collector: Optional[ErrorCollector] = None,
        core_size: int = DEFAULT_CORE_SIZE,
        require_operands: bool = True,
        filename: str = "<input>",
    ):
        self.symbols = SymbolTable()
        self.collector = collector if collector is not None else ErrorCollector()
        self.core_size = core_size
        self.require_operands = require_operands
        self.filename = filename

        self._evaluator = ExpressionEvaluator()
        self._instruction_lines: list[SourceLine] = []
        self._origins: list[tuple[SourceLine, OriginDirective]] = []
        self._equ_trees: dict[str, Expression] = {}
        self._equ_errors: dict[str, RedcodeSyntaxError] = {}
        self._collected = False

    # =========================================================================
    # Pass 1: Symbol Collection
    # =========================================================================

    def collect(self, lines: list[SourceLine]) -> SymbolTable:
        """Bind every declared label. Must run before ``resolve``."""
        pending = []
        self._instruction_lines = []
        self._origins = []

        for line in lines:
            pending.extend(line.labels)
            statement = line.statement

            if isinstance(statement, Instruction):
                index = len(self._instruction_lines)
                for label in pending:
                    self._bind(line, lambda: self.symbols.declare_label(
                        label.name, index, label.location
                    ))
                pending = []
                self._instruction_lines.append(line)

            elif isinstance(statement, EquBinding):
                for label in pending:
                    self._bind(line, lambda: self.symbols.bind_equ(
                        label.name, statement.text, label.location
                    ))
                pending = []

            elif isinstance(statement, OriginDirective):
                self._origins.append((line, statement))

        end_index = len(self._instruction_lines)
        for label in pending:
            logger.debug(f"'{label.name}' has no following instruction, binding to {end_index}")
            self._bind(None, lambda: self.symbols.declare_label(
                label.name, end_index, label.location
            ))

        self._collected = True
        logger.debug(
            f"pass 1: {len(self.symbols)} symbols, "
            f"{len(self._instruction_lines)} instructions"
        )
        return self.symbols

    def _bind(self, line: Optional[SourceLine], declare) -> None:
        try:
            declare()
        except DuplicateLabelError as e:
            if line is not None:
                e.with_source_line(line.text)
            self.collector.add(e)

    # =========================================================================
    # Pass 2: Reference Resolution
    # =========================================================================

    def resolve(self) -> list[ResolvedInstruction]:
        """
        Resolve every instruction collected by pass 1.

        Raises:
            RuntimeError: ``collect`` has not been run
        """
        if not self._collected:
            raise RuntimeError("collect() must run before resolve()")

        resolved = []
        for index, line in enumerate(self._instruction_lines):
            instruction = self._resolve_instruction(line, index)
            if instruction is not None:
                resolved.append(instruction)

        logger.debug(f"pass 2: resolved {len(resolved)} of {len(self._instruction_lines)} instructions")
        return resolved

    def _resolve_instruction(self, line: SourceLine, index: int) -> Optional[ResolvedInstruction]:
        instruction = line.instruction
        opcode = instruction.opcode
        problems: list[AssemblerError] = []

        if (
            self.require_operands
            and instruction.b_field is None
            and requires_two_operands(opcode)
        ):
            problems.append(MissingFieldError(
                f"'{opcode.value}' requires two operand fields",
                instruction.location,
            ))

        a_expr = self._resolve_expression(instruction.a_field.expression, index, problems)
        b_expr = None
        if instruction.b_field is not None:
            b_expr = self._resolve_expression(instruction.b_field.expression, index, problems)

        if not problems:
            try:
                a_value = self._fold(self._evaluator.evaluate(a_expr))
                b_value = self._fold(self._evaluator.evaluate(b_expr)) if b_expr is not None else 0
            except AssemblerError as e:
                problems.append(e)

        if problems:
            self._report(problems, line)
            return None

        a_mode = instruction.a_field.mode
        if instruction.b_field is not None:
            b_mode = instruction.b_field.mode
        elif opcode == Opcode.DAT:
            # DAT x is DAT #0, x
            a_mode, a_value, b_mode, b_value = AddressMode.IMMEDIATE, 0, a_mode, a_value
        else:
            b_mode = AddressMode.DIRECT

        modifier = instruction.modifier
        if modifier is None:
            modifier = default_modifier(opcode, a_mode, b_mode)

        return ResolvedInstruction(
            opcode, modifier, a_mode, a_value, b_mode, b_value, line.line_number
        )

    def _resolve_expression(
        self,
        expression: Expression,
        index: int,
        problems: list[AssemblerError],
        chain: tuple[str, ...] = (),
    ) -> Expression:
        """
        Replace every label reference in ``expression``.

        Args:
            expression: Tree to rewrite
            index: Index of the instruction the expression belongs to
            problems: Receives every error found
            chain: EQU names being expanded, outermost first
        """
        def replace(ref: LabelRef) -> Expression:
            symbol = self.symbols.lookup(ref.name)

            if symbol is None:
                problems.append(UndefinedLabelError(
                    ref.name,
                    location=ref.location,
                    similar_names=self.symbols.similar(ref.name),
                ))
                return Number(0, ref.location)

            if symbol.kind == SymbolKind.LABEL:
                return Number(symbol.index - index, ref.location)

            if ref.name in chain:
                problems.append(CircularEquError([*chain, ref.name], ref.location))
                return Number(0, ref.location)

            try:
                tree = self._equ_tree(symbol)
            except RedcodeSyntaxError as e:
                problems.append(e)
                return Number(0, ref.location)
            return self._resolve_expression(tree, index, problems, (*chain, ref.name))

        return substitute(expression, replace)

    def _equ_tree(self, symbol: Symbol) -> Expression:
        """
        Parse (once) the replacement text of an EQU symbol.

        A parse failure is cached too, so every reference raises the same
        error object and it is reported only once.
        """
        if symbol.name in self._equ_errors:
            raise self._equ_errors[symbol.name]
        if symbol.name not in self._equ_trees:
            line_number = symbol.location.line if symbol.location else 0
            try:
                tree = parse_expression(symbol.text, self.filename, line_number)
            except RedcodeSyntaxError as e:
                e.hint = e.hint or f"in the EQU value of '{symbol.name}'"
                self._equ_errors[symbol.name] = e
                raise
            self._equ_trees[symbol.name] = tree
        return self._equ_trees[symbol.name]

    def _report(self, problems: list[AssemblerError], line: SourceLine) -> None:
        for problem in problems:
            # a bad EQU value is shared by every reference to it
            if any(problem is reported for reported in self.collector.errors):
                continue
            if problem.source_line is None:
                problem.with_source_line(line.text)
            self.collector.add(problem)

    def _fold(self, value: int) -> int:
        """Fold ``value`` into (-core_size/2, core_size/2]."""
        value %= self.core_size
        if value > self.core_size // 2:
            value -= self.core_size
        return value

    # =========================================================================
    # Start Offset
    # =========================================================================

    def resolve_start(self) -> int:
        """
        Evaluate the program's start offset.

        The first ORG or END with an expression wins; later ones are
        reported as warnings. Labels here are absolute instruction indices
        and the result is reduced modulo the core size.
        """
        origins = [(line, o) for line, o in self._origins if o.expression is not None]
        if not origins:
            return 0

        first_line, first = origins[0]
        for line, extra in origins[1:]:
            message = (
                f"line {line.line_number}: {extra.keyword} ignored, start already "
                f"set by {first.keyword} on line {first_line.line_number}"
            )
            logger.warning(message)
            self.collector.add_warning(message)

        problems: list[AssemblerError] = []
        expression = self._resolve_expression(first.expression, 0, problems)
        if not problems:
            try:
                return self._evaluator.evaluate(expression) % self.core_size
            except AssemblerError as e:
                problems.append(e)

        self._report(problems, first_line)
        return 0
