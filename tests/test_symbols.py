# =============================================================================
# test_symbols.py - Symbol Table and Resolver Tests
# =============================================================================
# Tests for two-pass label resolution.
#
# Test coverage includes:
#   - Pass 1: label binding, pending labels, EQU bindings, duplicates
#   - Pass 2: relative offsets, forward references, EQU substitution
#   - Undefined and circular references
#   - Core-size folding
#   - ICWS'94 operand defaults and default modifiers
#   - Start offset from ORG/END
# =============================================================================

import pytest
from redcode.assembler.opcodes import AddressMode, Modifier, Opcode
from redcode.assembler.parser import Parser
from redcode.assembler.program import ResolvedInstruction
from redcode.assembler.symbols import Resolver, Symbol, SymbolKind, SymbolTable
from redcode.errors import (
    CircularEquError,
    DuplicateLabelError,
    ErrorCollector,
    ExpectedExpressionError,
    ExpressionError,
    MissingFieldError,
    SourceLocation,
    UndefinedLabelError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def parse_lines(source: str) -> list:
    """Parse each line of ``source`` (no comments, no blank first line)."""
    parser = Parser("<test>")
    return [
        parser.parse_line(text, number)
        for number, text in enumerate(source.split("\n"), start=1)
    ]


def make_resolver(source: str, **kwargs) -> Resolver:
    """Run pass 1 over ``source`` and return the resolver."""
    resolver = Resolver(**kwargs)
    resolver.collect(parse_lines(source))
    return resolver


def resolve(source: str, **kwargs) -> list:
    """
    Run both passes and return the resolved instructions.

    Fails the test if any error was collected.
    """
    resolver = make_resolver(source, **kwargs)
    instructions = resolver.resolve()
    assert not resolver.collector.has_errors(), resolver.collector.report()
    return instructions


def errors_of(source: str, **kwargs) -> list:
    """Run both passes and return the collected errors."""
    resolver = make_resolver(source, **kwargs)
    resolver.resolve()
    return resolver.collector.errors


def a_values(source: str) -> list:
    return [instruction.a_value for instruction in resolve(source)]


# =============================================================================
# Symbol Table Tests
# =============================================================================

class TestSymbolTable:
    """Test the SymbolTable in isolation."""

    def test_declare_and_lookup(self):
        table = SymbolTable()
        table.declare_label("loop", 3)
        symbol = table.lookup("loop")
        assert symbol == Symbol("loop", SymbolKind.LABEL, index=3)
        assert "loop" in table
        assert len(table) == 1

    def test_lookup_missing(self):
        assert SymbolTable().lookup("nope") is None

    def test_bind_equ(self):
        table = SymbolTable()
        table.bind_equ("step", "4 * 365")
        assert table.lookup("step").text == "4 * 365"
        assert table.labels() == {}

    def test_identical_redeclaration_allowed(self):
        table = SymbolTable()
        table.declare_label("a", 1, SourceLocation("<test>", 1, 1))
        table.declare_label("a", 1, SourceLocation("<test>", 2, 1))
        assert table.lookup("a").location.line == 1

    def test_conflicting_redeclaration(self):
        table = SymbolTable()
        table.declare_label("a", 1, SourceLocation("<test>", 1, 1))
        with pytest.raises(DuplicateLabelError) as exc_info:
            table.declare_label("a", 2, SourceLocation("<test>", 5, 1))
        assert exc_info.value.original_location.line == 1
        assert "first declared at <test>:1:1" in exc_info.value.hint

    def test_label_and_equ_conflict(self):
        table = SymbolTable()
        table.declare_label("a", 0)
        with pytest.raises(DuplicateLabelError):
            table.bind_equ("a", "0")

    def test_names_are_case_sensitive(self):
        table = SymbolTable()
        table.declare_label("Loop", 0)
        table.declare_label("loop", 1)
        assert table.labels() == {"Loop": 0, "loop": 1}

    def test_iteration_in_declaration_order(self):
        table = SymbolTable()
        table.declare_label("b", 0)
        table.bind_equ("a", "1")
        assert [symbol.name for symbol in table] == ["b", "a"]

    def test_format_listing(self):
        table = SymbolTable()
        table.declare_label("start", 2)
        table.bind_equ("n", "4")
        assert table.format_listing() == "start  LABEL  2\nn      EQU    4"

    def test_similar(self):
        table = SymbolTable()
        table.declare_label("bomb", 0)
        assert table.similar("bmob") == ["bomb"]


# =============================================================================
# Pass 1 Tests
# =============================================================================

class TestCollection:
    """Test how labels bind in pass 1."""

    def test_label_binds_to_instruction_index(self):
        resolver = make_resolver("nop 0\nloop: add #1, 1\njmp loop")
        assert resolver.symbols.labels() == {"loop": 1}

    def test_label_only_line_names_next_instruction(self):
        resolver = make_resolver("nop 0\nstart\n\nmov 0, 1")
        assert resolver.symbols.labels() == {"start": 1}

    def test_labels_across_lines(self):
        resolver = make_resolver("a\nb c: mov 0, 1")
        assert resolver.symbols.labels() == {"a": 0, "b": 0, "c": 0}

    def test_trailing_label_binds_past_end(self):
        resolver = make_resolver("nop 0\nnop 0\nfinish")
        assert resolver.symbols.labels() == {"finish": 2}

    def test_equ_binds_pending_labels(self):
        resolver = make_resolver("a\nb equ 5\nmov #a, #b")
        assert resolver.symbols.lookup("a").text == "5"
        assert resolver.symbols.lookup("b").text == "5"

    def test_org_keeps_pending_labels(self):
        resolver = make_resolver("x\norg 0\nmov 0, 1")
        assert resolver.symbols.labels() == {"x": 0}

    def test_duplicate_label_collected(self):
        resolver = make_resolver("a dat 0\na dat 1")
        errors = resolver.collector.errors
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateLabelError)
        assert errors[0].line == 2
        assert errors[0].source_line == "a dat 1"

    def test_same_binding_twice_is_not_duplicate(self):
        resolver = make_resolver("a\na dat 0")
        assert not resolver.collector.has_errors()

    def test_resolve_requires_collect(self):
        with pytest.raises(RuntimeError):
            Resolver().resolve()


# =============================================================================
# Pass 2 Tests
# =============================================================================

class TestReferences:
    """Test reference resolution to relative offsets."""

    def test_forward_reference(self):
        source = "jmp target\ndat 0\ndat 0\ntarget dat 0"
        assert a_values(source)[0] == 3

    def test_backward_reference(self):
        assert a_values("loop add #1, 1\njmp loop")[1] == -1

    def test_self_reference(self):
        assert a_values("imp mov imp, imp+1") == [0]
        assert resolve("imp mov imp, imp+1")[0].b_value == 1

    def test_label_arithmetic(self):
        source = "first dat 0\ndat 0\nlast dat 0\nmov #last-first, 0"
        assert a_values(source)[3] == 2

    def test_every_undefined_reference_reported(self):
        errors = errors_of("jmp nowhere\njmp elsewhere\nmov missing, gone")
        assert [type(e) for e in errors] == [UndefinedLabelError] * 4
        assert [e.name for e in errors] == ["nowhere", "elsewhere", "missing", "gone"]

    def test_undefined_reference_suggests_label(self):
        errors = errors_of("loop jmp lop")
        assert errors[0].similar_names == ["loop"]
        assert errors[0].source_line == "loop jmp lop"

    def test_case_sensitive_reference(self):
        errors = errors_of("Loop jmp loop")
        assert isinstance(errors[0], UndefinedLabelError)

    def test_instructions_with_errors_left_out(self):
        resolver = make_resolver("nop 0\njmp nowhere\nnop 0")
        assert len(resolver.resolve()) == 2


class TestEqu:
    """Test EQU substitution."""

    def test_constant(self):
        assert a_values("step equ 4\nmov #step*2, 1") == [8]

    def test_substitution_keeps_precedence(self):
        """An EQU value acts as a parenthesized sub-expression."""
        assert a_values("n equ 1+1\nmov #n*3, 0") == [6]

    def test_label_inside_equ_is_relative_to_user(self):
        source = "bomb dat 0\nptr equ bomb\nnop 0\nmov 0, ptr"
        assert resolve(source)[2].b_value == -2

    def test_equ_chain(self):
        assert a_values("a equ b+1\nb equ 2\nmov #a, 0") == [3]

    def test_forward_equ(self):
        assert a_values("mov #size, 0\nsize equ 10") == [10]

    def test_circular_equ(self):
        errors = errors_of("a equ b\nb equ a\njmp a")
        assert isinstance(errors[0], CircularEquError)
        assert errors[0].chain == ["a", "b", "a"]

    def test_self_referencing_equ(self):
        errors = errors_of("x equ x+1\ndat x")
        assert isinstance(errors[0], CircularEquError)

    def test_bad_equ_text(self):
        errors = errors_of("x equ 1 +\ndat x")
        assert isinstance(errors[0], ExpectedExpressionError)
        assert "EQU value of 'x'" in errors[0].hint

    def test_bad_equ_text_reported_once(self):
        """Every reference fails, but the bad value is one error."""
        resolver = make_resolver("x equ 1 +\ndat x\nmov x, x\njmp x")
        assert resolver.resolve() == []
        errors = resolver.collector.errors
        assert len(errors) == 1
        assert isinstance(errors[0], ExpectedExpressionError)

    def test_undefined_inside_equ(self):
        errors = errors_of("x equ y\ndat x")
        assert isinstance(errors[0], UndefinedLabelError)
        assert errors[0].name == "y"


# =============================================================================
# Value Folding Tests
# =============================================================================

class TestFolding:
    """Test folding into (-core_size/2, core_size/2]."""

    @pytest.mark.parametrize("value,expected", [
        ("4000", 4000),
        ("4001", -3999),
        ("-4000", 4000),
        ("-3999", -3999),
        ("8005", 5),
        ("-1", -1),
    ])
    def test_default_core(self, value, expected):
        assert resolve(f"dat #0, #{value}")[0].b_value == expected

    def test_custom_core_size(self):
        assert resolve("dat #0, #7", core_size=10)[0].b_value == -3

    def test_division_by_zero_collected(self):
        errors = errors_of("dat 1/0")
        assert isinstance(errors[0], ExpressionError)


# =============================================================================
# Instruction Semantics Tests
# =============================================================================

class TestSemantics:
    """Test ICWS'94 operand defaults and default modifiers."""

    def test_dat_single_operand_goes_to_b(self):
        assert resolve("dat 5")[0] == ResolvedInstruction(
            Opcode.DAT, Modifier.F,
            AddressMode.IMMEDIATE, 0,
            AddressMode.DIRECT, 5,
        )

    def test_dat_single_immediate(self):
        instruction = resolve("dat #5")[0]
        assert str(instruction) == "DAT.F #0, #5"

    def test_jmp_single_operand(self):
        assert str(resolve("jmp 2")[0]) == "JMP.B $2, $0"

    def test_explicit_modifier_kept(self):
        assert str(resolve("mov.x #1, 2")[0]) == "MOV.X #1, $2"

    def test_default_modifier_applied(self):
        assert str(resolve("add #1, 2")[0]) == "ADD.AB #1, $2"
        assert str(resolve("add 1, 2")[0]) == "ADD.F $1, $2"

    def test_two_operands_required(self):
        errors = errors_of("mov 0")
        assert isinstance(errors[0], MissingFieldError)
        assert errors[0].line == 1

    def test_operand_check_disabled(self):
        instruction = resolve("mov 0", require_operands=False)[0]
        assert str(instruction) == "MOV.I $0, $0"

    def test_line_number_recorded(self):
        assert resolve("\n\nnop 0")[0].line_number == 3


# =============================================================================
# Start Offset Tests
# =============================================================================

class TestStartOffset:
    """Test ORG/END start offset resolution."""

    def test_no_origin(self):
        resolver = make_resolver("nop 0")
        assert resolver.resolve_start() == 0

    def test_org_label(self):
        resolver = make_resolver("org start\nnop 0\nstart nop 0")
        assert resolver.resolve_start() == 1

    def test_end_label(self):
        resolver = make_resolver("nop 0\nstart nop 0\nend start")
        assert resolver.resolve_start() == 1

    def test_bare_end_sets_nothing(self):
        resolver = make_resolver("nop 0\nend")
        assert resolver.resolve_start() == 0

    def test_first_origin_wins(self):
        collector = ErrorCollector()
        resolver = make_resolver("org 1\nnop 0\nnop 0\nend 0", collector=collector)
        assert resolver.resolve_start() == 1
        assert collector.warning_count() == 1
        assert "END ignored" in collector.warnings[0]

    def test_undefined_origin_label(self):
        resolver = make_resolver("org nowhere\nnop 0")
        assert resolver.resolve_start() == 0
        assert isinstance(resolver.collector.errors[0], UndefinedLabelError)
