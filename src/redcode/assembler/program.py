"""
Resolved Program Model
======================

The assembler's output: a list of fully resolved instructions, in load-file
form, ready for a MARS to load into core.

Load-File Format
----------------
Every instruction is written with an explicit modifier and explicit
addressing modes:

    ORG 1
    DAT.F #0, #0
    MOV.I $-1, $2

Assembling a dump gives back an identical instruction stream.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional

from redcode.assembler.opcodes import AddressMode, Modifier, Opcode
from redcode.assembler.preprocess import Metadata

if TYPE_CHECKING:
    from redcode.assembler.parser import SourceLine
    from redcode.assembler.symbols import SymbolTable


@dataclass(frozen=True)
class ResolvedInstruction:
    """
    One instruction with every label resolved and every default applied.

    Attributes:
        opcode: The operation
        modifier: Explicit or ICWS'94 default modifier
        a_mode, a_value: A field
        b_mode, b_value: B field
        line_number: Source line (not part of equality)
    """
    opcode: Opcode
    modifier: Modifier
    a_mode: AddressMode
    a_value: int
    b_mode: AddressMode
    b_value: int
    line_number: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return (
            f"{self.opcode.value}.{self.modifier.value} "
            f"{self.a_mode.value}{self.a_value}, {self.b_mode.value}{self.b_value}"
        )


@dataclass
class Program:
    """
    A resolved Redcode program.

    Attributes:
        instructions: Resolved instruction stream
        start_offset: Index of the first instruction to execute
        metadata: Information from ;name, ;author... comments
        symbols: The symbol table built by the resolver
        lines: Parsed source lines
    """
    instructions: list[ResolvedInstruction]
    start_offset: int = 0
    metadata: Metadata = field(default_factory=Metadata)
    symbols: Optional["SymbolTable"] = None
    lines: list["SourceLine"] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[ResolvedInstruction]:
        return iter(self.instructions)

    def dump(self, include_metadata: bool = True) -> str:
        """
        Render the program in load-file form.

        Args:
            include_metadata: Emit ;name, ;author... comment lines first
        """
        lines = []
        if include_metadata:
            lines.extend(self.metadata.to_comments())
        if self.start_offset != 0:
            lines.append(f"ORG {self.start_offset}")
        lines.extend(str(instruction) for instruction in self.instructions)
        return "\n".join(lines) + "\n" if lines else ""
