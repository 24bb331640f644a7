"""
Redcode - Assembler for the Core War Programming Language
=========================================================

This package parses and resolves Redcode, the assembly language in which
Core War warriors are written. It follows the ICWS'94 draft standard:
19 opcodes, 7 modifiers, 8 addressing modes and full C-style expressions
in operand fields.

Main Components
---------------
- **assembler**: Line parser, two-pass resolver and load-file output
- **config**: Assembler settings, from code or environment variables
- **cli**: The ``redasm`` command-line tool

Quick Start
-----------
    >>> from redcode import assemble
    >>> program = assemble('''
    ... ;name Imp
    ... imp  MOV.I imp, imp+1
    ... ''')
    >>> program.metadata.name
    'Imp'
    >>> print(program.dump(include_metadata=False), end="")
    MOV.I $0, $1

Or use the command-line tool:
    $ redasm imp.red -o imp.rc

Reference Documentation
-----------------------
- ICWS'94 draft: https://corewar.co.uk/standards/icws94.htm
"""

__version__ = "1.0.0"

from redcode.assembler import Assembler, Program, assemble, assemble_file
from redcode.config import AssemblerConfig
from redcode.errors import (
    RedcodeError,
    AssemblerError,
    RedcodeSyntaxError,
    LexError,
    ExpectedExpressionError,
    UnterminatedExpressionError,
    UnknownOpcodeError,
    InvalidModifierError,
    MissingFieldError,
    AmbiguousLabelOpcodeError,
    ResolutionError,
    UndefinedLabelError,
    DuplicateLabelError,
    CircularEquError,
    ExpressionError,
    AssemblyFailedError,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "Program",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    # Exception hierarchy
    "RedcodeError",
    "AssemblerError",
    "RedcodeSyntaxError",
    "LexError",
    "ExpectedExpressionError",
    "UnterminatedExpressionError",
    "UnknownOpcodeError",
    "InvalidModifierError",
    "MissingFieldError",
    "AmbiguousLabelOpcodeError",
    "ResolutionError",
    "UndefinedLabelError",
    "DuplicateLabelError",
    "CircularEquError",
    "ExpressionError",
    "AssemblyFailedError",
]
