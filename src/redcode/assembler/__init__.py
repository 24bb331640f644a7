"""
Redcode Assembler
=================

This package turns Redcode warrior source into a resolved instruction
stream, ready for a MARS to load into core.

Main Components
---------------
- **Assembler**: Orchestrates preprocessing, parsing and resolution
- **Lexer**: Tokenizes one source line
- **ExpressionParser**: Precedence-climbing parser for field expressions
- **Parser**: Classifies a line into labels and a statement
- **Resolver**: Two-pass label and EQU resolution
- **Program**: The resolved result, with load-file output

Assembly Process
----------------
1. **Preprocessing**: strip ';' comments, collect ;name/;author metadata,
   drop everything after END
2. **Parsing**: each line is parsed on its own; syntax errors are collected
   and the next line is parsed regardless
3. **Resolution** (two-pass):
   - Pass 1: bind every label to its instruction index, every EQU name
     to its text
   - Pass 2: replace references with relative offsets, apply ICWS'94
     default modifiers, fold values into the core range

Example Usage
-------------
>>> from redcode.assembler import assemble
>>> program = assemble('''
... imp: MOV 0, 1
... ''')
>>> str(program.instructions[0])
'MOV.I $0, $1'
"""

from redcode.assembler.assembler import Assembler, assemble, assemble_file
from redcode.assembler.lexer import Lexer, Token, TokenType, tokenize_line
from redcode.assembler.expressions import (
    BinaryOp,
    Expression,
    ExpressionEvaluator,
    ExpressionParser,
    LabelRef,
    Number,
    UnaryOp,
    format_expression,
    parse_expression,
)
from redcode.assembler.parser import (
    EquBinding,
    Field,
    Instruction,
    LabelDecl,
    OriginDirective,
    Parser,
    SourceLine,
    Statement,
    parse_line,
)
from redcode.assembler.opcodes import (
    AddressMode,
    Modifier,
    Opcode,
    MNEMONICS,
    RESERVED_WORDS,
    default_modifier,
)
from redcode.assembler.preprocess import Metadata, clean_source
from redcode.assembler.program import Program, ResolvedInstruction
from redcode.assembler.symbols import Resolver, Symbol, SymbolKind, SymbolTable

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize_line",
    # Expressions
    "Expression",
    "Number",
    "LabelRef",
    "UnaryOp",
    "BinaryOp",
    "ExpressionParser",
    "ExpressionEvaluator",
    "parse_expression",
    "format_expression",
    # Parser
    "Parser",
    "SourceLine",
    "Statement",
    "LabelDecl",
    "Field",
    "Instruction",
    "EquBinding",
    "OriginDirective",
    "parse_line",
    # Opcodes
    "Opcode",
    "Modifier",
    "AddressMode",
    "MNEMONICS",
    "RESERVED_WORDS",
    "default_modifier",
    # Preprocessing
    "Metadata",
    "clean_source",
    # Resolution
    "Resolver",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "Program",
    "ResolvedInstruction",
]
