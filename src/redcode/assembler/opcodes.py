"""
Redcode Instruction Set Definitions
===================================

Opcodes, modifiers and addressing modes of ICWS'94 Redcode, together with
the semantic tables the grammar itself does not encode:

- which opcodes accept a single operand,
- the default modifier when an instruction is written without one.

Default Modifiers (ICWS'94, A.2.1.2)
------------------------------------
| Opcode                  | A is #  | B is #  | otherwise |
|-------------------------|---------|---------|-----------|
| DAT                     | F       | F       | F         |
| JMP JMZ JMN DJN SPL NOP | B       | B       | B         |
| MOV SEQ SNE CMP         | AB      | B       | I         |
| ADD SUB MUL DIV MOD     | AB      | B       | F         |
| SLT LDP STP             | AB      | B       | B         |
"""

from enum import Enum


class Opcode(Enum):
    """Redcode operation codes."""
    DAT = "DAT"  # Data - kills the process that executes it
    MOV = "MOV"  # Move - copy from A to B
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    MOD = "MOD"
    JMP = "JMP"
    JMZ = "JMZ"  # Jump if zero
    JMN = "JMN"  # Jump if not zero
    DJN = "DJN"  # Decrement, jump if not zero
    SPL = "SPL"  # Split - spawn a new process
    CMP = "CMP"  # Alias for SEQ
    SEQ = "SEQ"  # Skip if equal
    SNE = "SNE"  # Skip if not equal
    SLT = "SLT"  # Skip if less than
    LDP = "LDP"  # Load from P-space
    STP = "STP"  # Store to P-space
    NOP = "NOP"

    @classmethod
    def lookup(cls, name: str) -> "Opcode | None":
        """Case-insensitive lookup; None if ``name`` is not a mnemonic."""
        return _OPCODES_BY_NAME.get(name.upper())


class Modifier(Enum):
    """Instruction modifiers selecting which fields an instruction uses."""
    A = "A"    # A-field to A-field
    B = "B"    # B-field to B-field
    AB = "AB"  # A-field to B-field
    BA = "BA"  # B-field to A-field
    F = "F"    # Both fields (A to A, B to B)
    X = "X"    # Both fields crossed (A to B, B to A)
    I = "I"    # Entire instruction

    @classmethod
    def lookup(cls, name: str) -> "Modifier | None":
        """Case-insensitive lookup; None if ``name`` is not a modifier."""
        return _MODIFIERS_BY_NAME.get(name.upper())


class AddressMode(Enum):
    """Addressing modes; the value is the source marker."""
    IMMEDIATE = "#"
    DIRECT = "$"
    A_INDIRECT = "*"
    B_INDIRECT = "@"
    A_PREDECREMENT = "{"
    B_PREDECREMENT = "<"
    A_POSTINCREMENT = "}"
    B_POSTINCREMENT = ">"

    @classmethod
    def from_marker(cls, marker: str) -> "AddressMode":
        """Return the mode for a marker character (``ValueError`` if none)."""
        return cls(marker)


_OPCODES_BY_NAME = {op.value: op for op in Opcode}
_MODIFIERS_BY_NAME = {mod.value: mod for mod in Modifier}

MNEMONICS = frozenset(_OPCODES_BY_NAME)

# Pseudo-ops recognised by the line classifier
PSEUDO_OPS = frozenset({"EQU", "ORG", "END"})

# Words that can never be label names
RESERVED_WORDS = MNEMONICS | PSEUDO_OPS

# Opcodes that may be written with a single operand
SINGLE_OPERAND_OPCODES = frozenset({
    Opcode.DAT,
    Opcode.JMP,
    Opcode.SPL,
    Opcode.NOP,
})

_B_DEFAULT_OPCODES = frozenset({
    Opcode.JMP, Opcode.JMZ, Opcode.JMN, Opcode.DJN, Opcode.SPL, Opcode.NOP,
})
_COMPARE_MOVE_OPCODES = frozenset({Opcode.MOV, Opcode.SEQ, Opcode.SNE, Opcode.CMP})
_ARITHMETIC_OPCODES = frozenset({
    Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV, Opcode.MOD,
})


def is_reserved(name: str) -> bool:
    """True if ``name`` (any case) is a mnemonic or pseudo-op."""
    return name.upper() in RESERVED_WORDS


def requires_two_operands(opcode: Opcode) -> bool:
    """True if ``opcode`` must be written with both an A and a B field."""
    return opcode not in SINGLE_OPERAND_OPCODES


def default_modifier(opcode: Opcode, a_mode: AddressMode, b_mode: AddressMode) -> Modifier:
    """
    Return the ICWS'94 default modifier for an instruction without one.

    Args:
        opcode: The instruction opcode
        a_mode: Addressing mode of the A field
        b_mode: Addressing mode of the B field
    """
    if opcode == Opcode.DAT:
        return Modifier.F
    if opcode in _B_DEFAULT_OPCODES:
        return Modifier.B
    if a_mode == AddressMode.IMMEDIATE:
        return Modifier.AB
    if b_mode == AddressMode.IMMEDIATE:
        return Modifier.B
    if opcode in _COMPARE_MOVE_OPCODES:
        return Modifier.I
    if opcode in _ARITHMETIC_OPCODES:
        return Modifier.F
    # SLT, LDP, STP
    return Modifier.B
