# =============================================================================
# test_opcodes.py - Instruction Set Table Tests
# =============================================================================
# Tests for opcode/modifier lookup, reserved words, operand counts and the
# ICWS'94 default modifier table.
# =============================================================================

import pytest
from redcode.assembler.opcodes import (
    AddressMode,
    MNEMONICS,
    Modifier,
    Opcode,
    RESERVED_WORDS,
    default_modifier,
    is_reserved,
    requires_two_operands,
)


IMM = AddressMode.IMMEDIATE
DIR = AddressMode.DIRECT
IND = AddressMode.B_INDIRECT


# =============================================================================
# Lookup Tests
# =============================================================================

class TestLookup:
    """Test case-insensitive name lookup."""

    def test_nineteen_mnemonics(self):
        assert len(MNEMONICS) == 19

    def test_opcode_lookup(self):
        assert Opcode.lookup("mov") == Opcode.MOV
        assert Opcode.lookup("Sne") == Opcode.SNE

    def test_opcode_lookup_unknown(self):
        assert Opcode.lookup("MOVE") is None

    def test_modifier_lookup(self):
        assert Modifier.lookup("ba") == Modifier.BA
        assert Modifier.lookup("q") is None

    def test_address_mode_from_marker(self):
        assert AddressMode.from_marker("{") == AddressMode.A_PREDECREMENT

    def test_address_mode_bad_marker(self):
        with pytest.raises(ValueError):
            AddressMode.from_marker("%")

    def test_reserved_words(self):
        assert "EQU" in RESERVED_WORDS
        assert is_reserved("org")
        assert is_reserved("dat")
        assert not is_reserved("imp")


# =============================================================================
# Operand Count Tests
# =============================================================================

class TestOperandCounts:
    """Test which opcodes may be written with one operand."""

    @pytest.mark.parametrize("opcode", [Opcode.DAT, Opcode.JMP, Opcode.SPL, Opcode.NOP])
    def test_single_operand_allowed(self, opcode):
        assert not requires_two_operands(opcode)

    @pytest.mark.parametrize("opcode", [
        Opcode.MOV, Opcode.ADD, Opcode.DJN, Opcode.JMZ, Opcode.CMP, Opcode.SLT,
    ])
    def test_two_operands_required(self, opcode):
        assert requires_two_operands(opcode)


# =============================================================================
# Default Modifier Tests
# =============================================================================

class TestDefaultModifier:
    """Test the ICWS'94 default modifier table, row by row."""

    def test_dat_always_f(self):
        assert default_modifier(Opcode.DAT, IMM, IMM) == Modifier.F
        assert default_modifier(Opcode.DAT, DIR, DIR) == Modifier.F

    @pytest.mark.parametrize("opcode", [
        Opcode.JMP, Opcode.JMZ, Opcode.JMN, Opcode.DJN, Opcode.SPL, Opcode.NOP,
    ])
    def test_jumps_always_b(self, opcode):
        assert default_modifier(opcode, IMM, DIR) == Modifier.B
        assert default_modifier(opcode, DIR, DIR) == Modifier.B

    @pytest.mark.parametrize("opcode", [Opcode.MOV, Opcode.SEQ, Opcode.SNE, Opcode.CMP])
    def test_move_compare_row(self, opcode):
        assert default_modifier(opcode, IMM, DIR) == Modifier.AB
        assert default_modifier(opcode, DIR, IMM) == Modifier.B
        assert default_modifier(opcode, DIR, IND) == Modifier.I

    @pytest.mark.parametrize("opcode", [
        Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV, Opcode.MOD,
    ])
    def test_arithmetic_row(self, opcode):
        assert default_modifier(opcode, IMM, IMM) == Modifier.AB
        assert default_modifier(opcode, DIR, IMM) == Modifier.B
        assert default_modifier(opcode, DIR, DIR) == Modifier.F

    @pytest.mark.parametrize("opcode", [Opcode.SLT, Opcode.LDP, Opcode.STP])
    def test_slt_pspace_row(self, opcode):
        assert default_modifier(opcode, IMM, DIR) == Modifier.AB
        assert default_modifier(opcode, DIR, DIR) == Modifier.B
