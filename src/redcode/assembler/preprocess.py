"""
Source Preprocessing
====================

Prepares raw warrior text for the line parser:

1. Normalise line endings (CR, LF and CRLF).
2. Strip ';' comments, collecting metadata from the well-known ones.
3. Drop everything after the first END line.

Lines keep their position, an emptied line stays as an empty string, so
line numbers reported by the parser are those of the original file.

Metadata Comments
-----------------
| Comment              | Metadata field     |
|----------------------|--------------------|
| ;redcode-94          | redcode = "94"     |
| ;name Imp            | name               |
| ;author A.K. Dewdney | author             |
| ;date, ;version      | date, version      |
| ;assert CORESIZE>0   | assertion          |
| ;strategy ...        | strategy (appended, one entry per line) |

Keys are matched case-insensitively. A repeated key overwrites the
earlier value, except ;strategy which accumulates.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import re

from redcode.assembler.opcodes import is_reserved

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|\S")


@dataclass
class Metadata:
    """Warrior information carried in comments."""
    redcode: Optional[str] = None
    name: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    version: Optional[str] = None
    assertion: Optional[str] = None
    strategy: list[str] = field(default_factory=list)

    def parse_comment(self, comment: str) -> bool:
        """
        Record ``comment`` (text after ';') if it is a metadata comment.

        Returns:
            True if the comment was recognised
        """
        parts = comment.strip().split(None, 1)
        if not parts:
            return False

        key = parts[0].lower()
        value = parts[1].strip() if len(parts) > 1 else ""

        if key.startswith("redcode"):
            suffix = key[len("redcode"):].lstrip("-")
            self.redcode = suffix or value
        elif key == "name":
            self.name = value
        elif key == "author":
            self.author = value
        elif key == "date":
            self.date = value
        elif key == "version":
            self.version = value
        elif key == "assert":
            self.assertion = value
        elif key == "strategy":
            self.strategy.append(value)
        else:
            return False
        return True

    def to_comments(self) -> list[str]:
        """Render the metadata back as comment lines."""
        lines = []
        if self.redcode is not None:
            lines.append(f";redcode-{self.redcode}" if self.redcode else ";redcode")
        for key in ("name", "author", "date", "version"):
            value = getattr(self, key)
            if value is not None:
                lines.append(f";{key} {value}".rstrip())
        if self.assertion is not None:
            lines.append(f";assert {self.assertion}".rstrip())
        for entry in self.strategy:
            lines.append(f";strategy {entry}".rstrip())
        return lines


@dataclass
class CleanedSource:
    """
    Output of preprocessing.

    Attributes:
        lines: Comment-free lines, index i holds file line i + 1
        metadata: Information collected from comments
    """
    lines: list[str]
    metadata: Metadata


def is_end_line(code: str) -> bool:
    """
    True if ``code`` (comment-free) is an END directive.

    Leading labels are allowed: ``done END start``.
    """
    for word in _WORD_PATTERN.findall(code):
        if word == ":":
            continue
        if word.upper() == "END":
            return True
        if is_reserved(word) or not (word[0].isalpha() or word[0] == "_"):
            return False
    return False


def clean_source(text: str) -> CleanedSource:
    """
    Strip comments, collect metadata and truncate after END.

    Args:
        text: Raw warrior source

    Returns:
        CleanedSource with one entry per kept file line
    """
    metadata = Metadata()
    lines: list[str] = []

    raw_lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if raw_lines[-1] == "":
        raw_lines.pop()

    for raw in raw_lines:
        code, sep, comment = raw.partition(";")
        if sep:
            metadata.parse_comment(comment)
        code = code.rstrip()
        lines.append(code)

        if is_end_line(code):
            logger.debug(f"END on line {len(lines)}, ignoring the rest of the source")
            break

    return CleanedSource(lines, metadata)
