"""Patch cover service - orchestrates parsing, filtering and correlation"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from patchcover.application.correlation import CorrelationEngine
from patchcover.domain.classifiers.line_classifier import LineClassifier
from patchcover.domain.models.coverage_report import CoverageReport
from patchcover.infrastructure.diff_parser import parse_diff_file
from patchcover.infrastructure.file_filter import ProfileFilter
from patchcover.infrastructure.profile_parser import parse_profiles_file
from patchcover.infrastructure.report_writer import write_uncovered_lines

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PatchCoverService:
    """Computes a coverage report from files on disk"""

    def __init__(
        self,
        profile_filter: Optional[ProfileFilter] = None,
        classifier: Optional[LineClassifier] = None,
        uncovered_lines_path: Optional[PathLike] = None,
    ):
        """Initialize service

        Args:
            profile_filter: Filter applied to the current profile (None = keep all files)
            classifier: Line classifier passed to the correlation engine
            uncovered_lines_path: Where to save uncovered lines (None = don't save)
        """
        self.profile_filter = profile_filter
        self.engine = CorrelationEngine(classifier)
        self.uncovered_lines_path = uncovered_lines_path

    def process_files(
        self,
        coverage_file: PathLike,
        diff_file: PathLike,
        prev_coverage_file: Optional[PathLike] = None,
    ) -> CoverageReport:
        """Parse inputs and compute the coverage report

        All inputs are parsed before any correlation happens, so a parse error
        never yields a partial report.

        Args:
            coverage_file: Coverage profile after the patch
            diff_file: Unified diff of the patch
            prev_coverage_file: Coverage profile before the patch (optional)

        Returns:
            Coverage report

        Raises:
            MissingInputError: If an input file does not exist
            ParseError: If an input cannot be parsed
        """
        logger.info(f"Computing patch coverage for {diff_file} against {coverage_file}")

        diff_files = parse_diff_file(diff_file)
        profiles = parse_profiles_file(coverage_file)
        prev_profiles = None
        if prev_coverage_file:
            prev_profiles = parse_profiles_file(prev_coverage_file)

        if self.profile_filter is not None:
            profiles, _ = self.profile_filter.filter_profiles(profiles)

        report = self.engine.correlate(diff_files, profiles, prev_profiles)

        if self.uncovered_lines_path:
            write_uncovered_lines(report, self.uncovered_lines_path)

        return report
