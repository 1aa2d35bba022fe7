"""Correlation engine - matches diff additions against coverage blocks"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from patchcover.domain.classifiers.line_classifier import GoLineClassifier, LineClassifier
from patchcover.domain.models.coverage_profile import CoverageProfile, ProfileBlock
from patchcover.domain.models.coverage_report import CoverageReport, Line, UncoveredFile
from patchcover.domain.models.file_change import DiffFile
from patchcover.domain.templates.report_template import render_uncovered_lines

logger = logging.getLogger(__name__)


@dataclass
class _PatchTally:
    """Patch counters and per-file line sets collected while matching blocks"""

    num_stmt: int = 0
    cover_count: int = 0
    covered: Dict[str, List[Line]] = field(default_factory=dict)
    candidates: Dict[str, List[Line]] = field(default_factory=dict)


def _percent(covered: int, total: int) -> float:
    if total == 0:
        return 0.0
    return covered / total * 100


def _block_totals(profiles: Iterable[CoverageProfile]) -> tuple[int, int]:
    num_stmt = 0
    cover_count = 0
    for profile in profiles:
        num_stmt += profile.num_stmt
        cover_count += profile.cover_count
    return num_stmt, cover_count


class CorrelationEngine:
    """Computes repository, patch and baseline coverage for a patch

    The engine is a pure function of its inputs: it performs no I/O and
    never raises for well-formed models.
    """

    def __init__(self, classifier: Optional[LineClassifier] = None):
        """Initialize engine

        Args:
            classifier: Line classifier deciding which added lines are not code
                (defaults to GoLineClassifier)
        """
        self.classifier = classifier or GoLineClassifier()

    def correlate(
        self,
        diff_files: Sequence[DiffFile],
        profiles: Sequence[CoverageProfile],
        prev_profiles: Optional[Sequence[CoverageProfile]] = None,
    ) -> CoverageReport:
        """Correlate a parsed diff with coverage profiles

        Args:
            diff_files: Files changed by the patch
            profiles: Coverage profiles taken after the patch
            prev_profiles: Baseline profiles (None when no baseline is known)

        Returns:
            Coverage report
        """
        report = CoverageReport()

        tally = _PatchTally()
        for profile in profiles:
            for diff_file in diff_files:
                # Profiles are prefixed with the module path, diffs are repo-relative
                if not profile.file_name.endswith(diff_file.new_name):
                    continue
                self._match_blocks(profile, diff_file, tally)

        report.num_stmt, report.cover_count = _block_totals(profiles)
        if prev_profiles is not None:
            report.has_prev_coverage = True
            report.prev_num_stmt, report.prev_cover_count = _block_totals(prev_profiles)

        report.uncovered_files = self._filter_uncovered(tally)
        report.patch_num_stmt = tally.num_stmt
        report.patch_cover_count = tally.cover_count
        report.uncovered_lines = render_uncovered_lines(report.uncovered_files)

        report.coverage = _percent(report.cover_count, report.num_stmt)
        report.prev_coverage = _percent(report.prev_cover_count, report.prev_num_stmt)
        if report.patch_num_stmt == 0:
            # Nothing to cover in the patch
            report.patch_coverage = 100.0
        else:
            report.patch_coverage = _percent(report.patch_cover_count, report.patch_num_stmt)

        logger.debug(
            f"Patch coverage {report.patch_cover_count}/{report.patch_num_stmt}, "
            f"total coverage {report.cover_count}/{report.num_stmt}"
        )
        return report

    def _match_blocks(self, profile: CoverageProfile, diff_file: DiffFile, tally: _PatchTally) -> None:
        """Credit each block of the profile to the first added line it contains"""
        for block in profile.blocks:
            hit = self._first_added_line(block, diff_file)
            if hit is None:
                continue
            line_number, text = hit
            line = Line(
                line_num=line_number,
                num_stmt=block.num_stmt,
                cover_count=block.count,
                line_string=text,
            )
            tally.num_stmt += block.num_stmt
            if block.is_covered:
                tally.cover_count += block.num_stmt
                tally.covered.setdefault(profile.file_name, []).append(line)
            else:
                tally.candidates.setdefault(profile.file_name, []).append(line)
            logger.debug(
                f"Block {profile.file_name}:{block.start_line}-{block.end_line} "
                f"hit by line {line_number} (stmts={block.num_stmt}, count={block.count})"
            )

    @staticmethod
    def _first_added_line(block: ProfileBlock, diff_file: DiffFile) -> Optional[tuple[int, str]]:
        for hunk in diff_file.hunks:
            for line_number, line in hunk.added_lines():
                if block.contains(line_number):
                    return line_number, line.text.replace("\n", "")
        return None

    def _filter_uncovered(self, tally: _PatchTally) -> List[UncoveredFile]:
        """Drop non-code lines from the candidates and correct patch counters

        Invalid lines are removed from the patch statement count; an invalid
        line that also has a matching covered entry gives back its credit.
        """
        uncovered_files = []
        for file_name, candidates in tally.candidates.items():
            covered = tally.covered.get(file_name)
            kept = []
            for line in candidates:
                uncovered = covered is None or not self._is_line_covered(line, covered)
                if not self.classifier.is_invalid(line.line_string):
                    if uncovered:
                        kept.append(line)
                    continue
                tally.num_stmt -= line.num_stmt
                if not uncovered:
                    tally.cover_count -= line.num_stmt
            if kept:
                uncovered_files.append(UncoveredFile(file_name=file_name, lines=kept))
        return uncovered_files

    @staticmethod
    def _is_line_covered(line: Line, covered: List[Line]) -> bool:
        return any(
            other.line_num == line.line_num
            and other.line_string == line.line_string
            and other.cover_count == line.cover_count
            for other in covered
        )


def correlate(
    diff_files: Sequence[DiffFile],
    profiles: Sequence[CoverageProfile],
    prev_profiles: Optional[Sequence[CoverageProfile]] = None,
    classifier: Optional[LineClassifier] = None,
) -> CoverageReport:
    """Correlate a parsed diff with coverage profiles using a fresh engine"""
    return CorrelationEngine(classifier).correlate(diff_files, profiles, prev_profiles)
