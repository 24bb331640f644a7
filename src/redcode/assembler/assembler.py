"""
Redcode Assembler - Main Interface
==================================

This module provides the Assembler class, the primary interface for turning
Redcode source into a resolved Program. It coordinates preprocessing, the
line parser and the two-pass resolver.

Example Usage
-------------
>>> from redcode.assembler import Assembler
>>>
>>> asm = Assembler()
>>> program = asm.assemble_string('''
... ;name Dwarf
... bomb    DAT     #0
... start   ADD     #4, bomb
...         MOV     bomb, @bomb
...         JMP     start
...         END     start
... ''')
>>> print(program.dump(), end="")
;name Dwarf
ORG 1
DAT.F #0, #0
ADD.AB #4, $-1
MOV.I $-2, @-2
JMP.B $-2, $0

When assembly fails, ``assemble_string`` returns None and the errors are
available from ``get_diagnostics()`` and ``get_error_report()``. The
module-level ``assemble`` function raises AssemblyFailedError instead.

Command-Line Usage
------------------
    $ redasm dwarf.red -o dwarf.rc --symbols
"""

from pathlib import Path
from typing import Iterable, Optional
import logging

from redcode.config import AssemblerConfig
from redcode.errors import (
    AssemblerError,
    AssemblyFailedError,
    ErrorCollector,
    RedcodeSyntaxError,
    TooManyErrors,
)
from redcode.assembler.parser import Parser, SourceLine
from redcode.assembler.preprocess import Metadata, clean_source
from redcode.assembler.program import Program
from redcode.assembler.symbols import Resolver

logger = logging.getLogger(__name__)


class Assembler:
    """
    Redcode assembler.

    Assembly pipeline:
    1. Preprocess: strip comments, collect metadata, stop at END
    2. Parse each line; syntax errors are collected and parsing moves on
    3. Pass 1: collect every label and EQU binding
    4. Pass 2: resolve references, apply default modifiers, fold values

    Pass 2 is skipped when any line failed to parse: a rejected line can
    hide label declarations, and resolving without them would only add
    spurious undefined-label errors.

    Attributes:
        config: Settings for this assembler
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        """
        Initialize the assembler.

        Args:
            config: Assembly settings (defaults to AssemblerConfig())
        """
        self.config = config or AssemblerConfig()
        self._errors = ErrorCollector(self.config.max_errors)
        self._lines: list[SourceLine] = []
        self._program: Optional[Program] = None

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_lines(
        self,
        lines: Iterable[str],
        filename: str = "<input>",
        metadata: Optional[Metadata] = None,
    ) -> Optional[Program]:
        """
        Assemble already-preprocessed lines.

        Each line must be free of comments and line terminators. Line
        numbers are positions in ``lines``, starting at 1.

        Args:
            lines: Source lines
            filename: Name used in error messages
            metadata: Metadata to attach to the program

        Returns:
            The resolved Program, or None if there were errors
        """
        self._errors.clear()
        self._lines = []
        self._program = None

        try:
            parsed = self._parse_lines(lines, filename)
            self._lines = parsed

            resolver = Resolver(
                collector=self._errors,
                core_size=self.config.core_size,
                require_operands=self.config.require_operands,
                filename=filename,
            )
            resolver.collect(parsed)

            if self._errors.has_errors():
                logger.debug(f"{self._errors.error_count()} errors, skipping reference resolution")
                return None

            instructions = resolver.resolve()
            start = resolver.resolve_start()
        except TooManyErrors as e:
            logger.warning(e.message)
            self._errors.add_warning(e.message)
            return None

        if self._errors.has_errors():
            return None

        self._program = Program(
            instructions=instructions,
            start_offset=start,
            metadata=metadata or Metadata(),
            symbols=resolver.symbols,
            lines=parsed,
        )
        logger.debug(f"assembled {len(instructions)} instructions, start offset {start}")
        return self._program

    def _parse_lines(self, lines: Iterable[str], filename: str) -> list[SourceLine]:
        parser = Parser(filename, strict=self.config.strict_lexing)
        parsed = []

        for line_number, text in enumerate(lines, start=1):
            try:
                line = parser.parse_line(text, line_number)
            except RedcodeSyntaxError as e:
                self._errors.add(e)
                continue

            if line.trailing_text:
                message = f"{filename}:{line_number}: ignoring trailing text {line.trailing_text!r}"
                logger.warning(message)
                self._errors.add_warning(message)
            parsed.append(line)

        logger.debug(f"parsed {len(parsed)} lines from {filename}")
        return parsed

    def assemble_string(self, source: str, filename: str = "<input>") -> Optional[Program]:
        """
        Assemble raw source text.

        Comments are stripped and metadata collected before parsing.

        Args:
            source: Redcode source
            filename: Name used in error messages

        Returns:
            The resolved Program, or None if there were errors
        """
        cleaned = clean_source(source)
        return self.assemble_lines(cleaned.lines, filename, cleaned.metadata)

    def assemble_file(self, filepath: str | Path) -> Optional[Program]:
        """
        Assemble a source file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        filepath = Path(filepath)
        logger.debug(f"assembling {filepath}")
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_program(self) -> Optional[Program]:
        """The last successfully assembled program."""
        return self._program

    def get_lines(self) -> list[SourceLine]:
        """Lines parsed by the last run."""
        return list(self._lines)

    def write_output(self, filepath: str | Path) -> None:
        """
        Write the last program in load-file form.

        Raises:
            RuntimeError: If there is no assembled program
        """
        if self._program is None:
            raise RuntimeError("no assembled program to write")
        Path(filepath).write_text(self._program.dump())
        logger.debug(f"wrote {len(self._program)} instructions to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol listing of the last program."""
        if self._program is None or self._program.symbols is None:
            raise RuntimeError("no assembled program to write")
        Path(filepath).write_text(self._program.symbols.format_listing() + "\n")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        return self._errors.has_errors()

    def get_errors(self) -> list[AssemblerError]:
        """Collected errors, in line order."""
        return sorted(self._errors.errors, key=lambda e: e.line)

    def get_diagnostics(self) -> list[tuple[int, str, str]]:
        """Collected errors as ordered (line, kind, message) triples."""
        return self._errors.diagnostics()

    def get_warnings(self) -> list[str]:
        return list(self._errors.warnings)

    def get_error_report(self) -> str:
        """Formatted report of all errors and warnings."""
        return self._errors.report()


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    source: str,
    filename: str = "<input>",
    config: Optional[AssemblerConfig] = None,
) -> Program:
    """
    Assemble source text.

    Raises:
        AssemblyFailedError: Carrying every error found, in line order
    """
    asm = Assembler(config)
    program = asm.assemble_string(source, filename)
    if program is None:
        raise AssemblyFailedError(asm.get_errors())
    return program


def assemble_file(filepath: str | Path, config: Optional[AssemblerConfig] = None) -> Program:
    """
    Assemble a source file.

    Raises:
        AssemblyFailedError: Carrying every error found, in line order
        FileNotFoundError: If the file does not exist
    """
    asm = Assembler(config)
    program = asm.assemble_file(filepath)
    if program is None:
        raise AssemblyFailedError(asm.get_errors())
    return program
