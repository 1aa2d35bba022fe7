"""CoverageReport model - result of correlating a diff with coverage profiles"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Line:
    """Added line bound to the coverage block that contains it"""

    line_num: int
    num_stmt: int
    cover_count: int
    line_string: str


@dataclass
class UncoveredFile:
    """Uncovered added lines of a single profile file"""

    file_name: str
    lines: List[Line] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file_name,
            "lines": [{"line_num": line.line_num, "line": line.line_string} for line in self.lines],
        }


@dataclass
class CoverageReport:
    """Repository, patch and baseline coverage totals"""

    num_stmt: int = 0
    cover_count: int = 0
    coverage: float = 0.0
    patch_num_stmt: int = 0
    patch_cover_count: int = 0
    patch_coverage: float = 0.0
    has_prev_coverage: bool = False
    prev_num_stmt: int = 0
    prev_cover_count: int = 0
    prev_coverage: float = 0.0
    uncovered_lines: str = ""  # Rendered uncovered lines section
    uncovered_files: List[UncoveredFile] = field(default_factory=list)

    @property
    def coverage_delta(self) -> float:
        """Change of repository coverage against the baseline (0 without one)"""
        if not self.has_prev_coverage:
            return 0.0
        return self.coverage - self.prev_coverage

    def to_dict(self) -> Dict[str, Any]:
        """Machine-readable form, used for JSON output"""
        return {
            "num_stmt": self.num_stmt,
            "cover_count": self.cover_count,
            "coverage": self.coverage,
            "patch_num_stmt": self.patch_num_stmt,
            "patch_cover_count": self.patch_cover_count,
            "patch_coverage": self.patch_coverage,
            "has_prev_coverage": self.has_prev_coverage,
            "prev_num_stmt": self.prev_num_stmt,
            "prev_cover_count": self.prev_cover_count,
            "prev_coverage": self.prev_coverage,
            "uncovered_lines": self.uncovered_lines,
            "uncovered_files": [uncovered.to_dict() for uncovered in self.uncovered_files],
        }
