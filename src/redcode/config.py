"""
Redcode Assembler - Configuration
=================================

Assembler settings. Configuration can come from:
- Default values (defined here)
- Environment variables (``AssemblerConfig.from_env``)
- Command-line options (the CLI overrides the environment)

Environment variables (all optional):
    REDCODE_CORE_SIZE: Size of the circular core values are folded into
    REDCODE_MAX_ERRORS: Error cap before assembly stops collecting
    REDCODE_REQUIRE_OPERANDS: "0"/"false" disables the operand-count check
    REDCODE_STRICT_LEXING: "1"/"true" makes unknown characters fail at lexing
"""

from dataclasses import dataclass
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_CORE_SIZE = 8000

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        core_size: Size of the circular core. Resolved field values are
            folded into the signed range (-core_size/2, core_size/2].
        max_errors: Maximum errors to collect before giving up.
        require_operands: Reject single-operand forms of opcodes that
            take two operands (MOV, ADD, ...) with MissingField.
        strict_lexing: Raise LexError at tokenization time instead of
            passing unknown characters through as UNKNOWN tokens.
    """

    core_size: int = DEFAULT_CORE_SIZE
    max_errors: int = 100
    require_operands: bool = True
    strict_lexing: bool = False

    def __post_init__(self) -> None:
        if self.core_size <= 0:
            raise ValueError(f"core size must be positive, got {self.core_size}")
        if self.max_errors <= 0:
            raise ValueError(f"max errors must be positive, got {self.max_errors}")

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Invalid values are logged and ignored.
        """
        config = cls()

        if core_size := os.environ.get("REDCODE_CORE_SIZE"):
            try:
                value = int(core_size)
                if value > 0:
                    config.core_size = value
                else:
                    logger.warning(f"Ignoring non-positive REDCODE_CORE_SIZE={core_size!r}")
            except ValueError:
                logger.warning(f"Ignoring invalid REDCODE_CORE_SIZE={core_size!r}")

        if max_errors := os.environ.get("REDCODE_MAX_ERRORS"):
            try:
                value = int(max_errors)
                if value > 0:
                    config.max_errors = value
                else:
                    logger.warning(f"Ignoring non-positive REDCODE_MAX_ERRORS={max_errors!r}")
            except ValueError:
                logger.warning(f"Ignoring invalid REDCODE_MAX_ERRORS={max_errors!r}")

        if (flag := _parse_flag("REDCODE_REQUIRE_OPERANDS")) is not None:
            config.require_operands = flag

        if (flag := _parse_flag("REDCODE_STRICT_LEXING")) is not None:
            config.strict_lexing = flag

        return config


def _parse_flag(name: str) -> bool | None:
    """Read a boolean environment variable; None when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring invalid {name}={raw!r}")
    return None
