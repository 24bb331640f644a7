"""
redasm - Redcode Assembler Command-Line Interface
=================================================

Assembles a Redcode warrior and prints (or writes) the resolved program in
load-file form.

Usage Examples
--------------
Print the load file:
    $ redasm imp.red

Write it to a file:
    $ redasm dwarf.red -o dwarf.rc

Show the symbol table too:
    $ redasm dwarf.red --symbols

Assemble for a smaller core:
    $ redasm --core-size 800 dwarf.red

Settings not given on the command line come from the REDCODE_*
environment variables (see ``redcode.config``).
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click

from redcode import __version__
from redcode.assembler import Assembler
from redcode.cli.errors import ExitCode, handle_cli_exception
from redcode.config import AssemblerConfig


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the load file here instead of standard output",
)
@click.option(
    "--core-size",
    type=click.IntRange(min=1),
    default=None,
    help="Core size used to fold field values (default: 8000)",
)
@click.option(
    "-s", "--symbols",
    is_flag=True,
    help="Print the symbol table after the program",
)
@click.option(
    "--no-operand-check",
    is_flag=True,
    help="Accept one-operand forms of two-operand opcodes (B field becomes $0)",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Reject unknown characters while tokenizing",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="redasm")
def main(
    input_file: Path,
    output: Optional[Path],
    core_size: Optional[int],
    symbols: bool,
    no_operand_check: bool,
    strict: bool,
    verbose: bool,
) -> None:
    """
    Assemble a Redcode warrior.

    INPUT_FILE is the Redcode source file (.red) to assemble.

    \b
    Examples:
        redasm imp.red               # Print the load file
        redasm imp.red -o imp.rc     # Write it to imp.rc
        redasm dwarf.red --symbols   # Also list labels and EQU names
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    try:
        config = AssemblerConfig.from_env()
        if core_size is not None:
            config.core_size = core_size
        if no_operand_check:
            config.require_operands = False
        if strict:
            config.strict_lexing = True

        asm = Assembler(config)
        program = asm.assemble_file(input_file)

        if program is None:
            click.echo(asm.get_error_report(), err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        if output is not None:
            asm.write_output(output)
            if verbose:
                click.echo(f"Wrote {len(program)} instructions to {output}", err=True)
        else:
            click.echo(program.dump(), nl=False)

        if symbols and program.symbols is not None:
            listing = program.symbols.format_listing()
            if listing:
                click.echo(listing)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
