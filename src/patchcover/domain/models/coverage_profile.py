"""Coverage profile model - blocks of statements and how often they ran"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ProfileBlock:
    """Contiguous range of a source file sharing one statement and execution count"""

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    num_stmt: int  # Executable statements in the range
    count: int  # Times the range executed, 0 means uncovered

    def contains(self, line_number: int) -> bool:
        return self.start_line <= line_number <= self.end_line

    @property
    def is_covered(self) -> bool:
        return self.count > 0


@dataclass
class CoverageProfile:
    """Coverage blocks recorded for one source file"""

    file_name: str  # May carry a module prefix not present in diff paths
    mode: str = "set"  # set, count, atomic
    blocks: List[ProfileBlock] = field(default_factory=list)

    @property
    def num_stmt(self) -> int:
        return sum(block.num_stmt for block in self.blocks)

    @property
    def cover_count(self) -> int:
        return sum(block.num_stmt for block in self.blocks if block.is_covered)
