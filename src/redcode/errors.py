"""
Redcode Error Hierarchy
=======================

This module defines the exception hierarchy for the Redcode assembler.
All exceptions inherit from RedcodeError, allowing callers to catch all
assembler-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
RedcodeError (base)
├── AssemblerError (source-level errors, carry a location)
│   ├── RedcodeSyntaxError - per-line syntax errors
│   │   ├── LexError - character that cannot begin any token
│   │   ├── ExpectedExpressionError - no operand where one is required
│   │   ├── UnterminatedExpressionError - unmatched '('
│   │   ├── UnknownOpcodeError - statement does not start with a mnemonic
│   │   ├── InvalidModifierError - bad '.modifier' suffix
│   │   ├── MissingFieldError - operand field missing
│   │   └── AmbiguousLabelOpcodeError - reserved word declared as a label
│   ├── ResolutionError - file-level symbol errors
│   │   ├── DuplicateLabelError - label bound twice, differently
│   │   ├── UndefinedLabelError - reference to an unknown label
│   │   └── CircularEquError - EQU bindings that refer to themselves
│   ├── ExpressionError - error evaluating an expression
│   └── TooManyErrors - error cap reached
└── AssemblyFailedError - raised by the convenience API, carries all errors

Every concrete error class carries a ``kind`` string naming its category
(``"UndefinedLabel"``, ``"LexError"``...). Diagnostics are reported as
``(line, kind, message)`` triples built from it.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class RedcodeError(Exception):
    """
    Base exception for all Redcode assembler errors.

        try:
            program = assemble(source)
        except RedcodeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(RedcodeError):
    """
    Base exception for all source-level errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    kind = "AssemblerError"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> int:
        """Line number of the error, 0 when unknown."""
        return self.location.line if self.location else 0

    def with_source_line(self, source_line: str) -> "AssemblerError":
        """Attach the offending source text after the fact and reformat."""
        self.source_line = source_line
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            imp.red:3:9: error: undefined label 'trget'
                JMP     trget
                        ^
            hint: did you mean 'target'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self._format_message()


# -----------------------------------------------------------------------------
# Per-line syntax errors
# -----------------------------------------------------------------------------

class RedcodeSyntaxError(AssemblerError):
    """
    Syntax error in a single source line.

    Syntax errors are recoverable: the assembler records them and moves
    on to the next line.
    """
    kind = "SyntaxError"


class LexError(RedcodeSyntaxError):
    """A character that cannot begin any token."""
    kind = "LexError"


class ExpectedExpressionError(RedcodeSyntaxError):
    """
    An expression operand was required but none was found.

    Raised for an empty field, a dangling binary operator, or an operator
    appearing where no preceding operand was parsed (``MOV * 3``).
    """
    kind = "ExpectedExpression"


class UnterminatedExpressionError(RedcodeSyntaxError):
    """Opening parenthesis without its matching ')'."""
    kind = "UnterminatedExpression"


class UnknownOpcodeError(RedcodeSyntaxError):
    """The statement part of a line does not start with a known mnemonic."""
    kind = "UnknownOpcode"


class InvalidModifierError(RedcodeSyntaxError):
    """
    A '.' follows the opcode but no valid modifier follows it.

    Valid modifiers are A, B, AB, BA, F, X and I (case-insensitive), written
    directly after the dot with no whitespace in between.
    """
    kind = "InvalidModifier"


class MissingFieldError(RedcodeSyntaxError):
    """An operand field is missing after an operation or a comma."""
    kind = "MissingField"


class AmbiguousLabelOpcodeError(RedcodeSyntaxError):
    """
    A reserved word was declared as a label.

    Mnemonics (and EQU, ORG, END) take priority over homonymous labels, so
    ``mov: DAT 0`` can never declare a label named ``mov``.
    """
    kind = "AmbiguousLabelOpcode"

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            f"'{name}' is a reserved word and cannot be declared as a label",
            location=location,
            hint="mnemonics take priority over labels; rename the label",
            source_line=source_line,
        )


# -----------------------------------------------------------------------------
# File-level resolution errors
# -----------------------------------------------------------------------------

class ResolutionError(AssemblerError):
    """
    Base class for errors found by the whole-file symbol passes.

    These are only reported after every line has been parsed, since
    resolution needs the complete declaration set.
    """
    kind = "ResolutionError"


class UndefinedLabelError(ResolutionError):
    """
    Reference to a label that is never declared.

    The resolver suggests similarly-named labels when this error occurs,
    helping to catch typos.
    """
    kind = "UndefinedLabel"

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_names: Optional[list[str]] = None,
    ):
        self.name = name
        self.similar_names = similar_names or []

        if not hint and self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLabelError(ResolutionError):
    """
    Label declared twice with different bindings.

    Includes the location of the original declaration when available.
    """
    kind = "DuplicateLabel"

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{name}' was first declared at {original_location}"

        super().__init__(
            f"duplicate label '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class CircularEquError(ResolutionError):
    """An EQU binding that, directly or indirectly, refers to itself."""
    kind = "CircularEqu"

    def __init__(
        self,
        chain: list[str],
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.chain = chain
        super().__init__(
            f"circular EQU definition: {' -> '.join(chain)}",
            location=location,
            source_line=source_line,
        )


class ExpressionError(AssemblerError):
    """
    Error evaluating a resolved expression.

    Raised for division or modulo by zero.
    """
    kind = "Expression"


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The assembler uses this to continue processing after encountering
    an error, collecting all errors before reporting them together.

    Example:
        collector = ErrorCollector(max_errors=100)

        try:
            for line in lines:
                try:
                    parse(line)
                except RedcodeSyntaxError as e:
                    collector.add(e)
        except TooManyErrors:
            pass

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def diagnostics(self) -> list[tuple[int, str, str]]:
        """
        Return collected errors as ordered (line, kind, message) triples.

        Errors are ordered by line number; errors on the same line keep
        the order in which they were found.
        """
        ordered = sorted(self.errors, key=lambda e: e.line)
        return [(e.line, e.kind, e.message) for e in ordered]

    def report(self) -> str:
        """
        Format all errors and warnings for display.

        Returns:
            Formatted string with all errors and warnings
        """
        lines = []

        for error in sorted(self.errors, key=lambda e: e.line):
            lines.append(str(error))
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    This prevents the assembler from flooding the user when there are
    fundamental problems with the source code.
    """
    kind = "TooManyErrors"

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


class AssemblyFailedError(RedcodeError):
    """
    Raised by the convenience functions when assembly produced errors.

    The caller never receives a partially resolved program: either a
    complete Program is returned, or this exception carries every error
    found, in line order.

    Attributes:
        errors: The collected AssemblerError instances
    """

    def __init__(self, errors: list[AssemblerError]):
        self.errors = sorted(errors, key=lambda e: e.line)
        count = len(self.errors)
        summary = f"assembly failed with {count} error{'s' if count != 1 else ''}"
        details = "\n".join(str(e) for e in self.errors)
        super().__init__(f"{summary}\n{details}" if details else summary)

    def diagnostics(self) -> list[tuple[int, str, str]]:
        """Return the errors as ordered (line, kind, message) triples."""
        return [(e.line, e.kind, e.message) for e in self.errors]
