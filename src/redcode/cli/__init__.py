"""
Redcode Command-Line Interface
==============================

- **redasm**: Redcode assembler

The tool is a Click application with help text and consistent exit codes
(see ``redcode.cli.errors``).
"""

__all__ = ["redasm"]
