"""Diff model - represents the files, hunks and lines of a unified diff"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class LineOp(str, Enum):
    """Operation of a line inside a hunk"""

    ADD = "+"
    DELETE = "-"
    CONTEXT = " "


@dataclass
class DiffLine:
    """Single line of a hunk"""

    op: LineOp
    text: str  # Line content without the diff prefix and trailing newline


@dataclass
class Hunk:
    """Represents a hunk (block of changes) in a file"""

    old_start: int  # Starting line number in old file
    old_count: int  # Number of lines in old file
    new_start: int  # Starting line number in new file
    new_count: int  # Number of lines in new file
    lines: List[DiffLine] = field(default_factory=list)

    def added_lines(self) -> Iterator[Tuple[int, DiffLine]]:
        """Yield (line_number, line) for every added line of the hunk

        The line number is new_start plus the position of the line among all
        lines of the hunk, context and deletions included.
        """
        for offset, line in enumerate(self.lines):
            if line.op == LineOp.ADD:
                yield self.new_start + offset, line


@dataclass
class DiffFile:
    """Represents changes in a single file"""

    new_name: str  # File path after the patch
    old_name: Optional[str] = None  # File path before the patch, if different
    status: str = "modified"  # modified, added, deleted, renamed
    hunks: List[Hunk] = field(default_factory=list)
    is_binary: bool = False

    @property
    def added_line_count(self) -> int:
        """Number of added lines across all hunks"""
        return sum(1 for hunk in self.hunks for _ in hunk.added_lines())
