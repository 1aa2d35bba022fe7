"""Quality gate - compares coverage against configured thresholds"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from patchcover.domain.config.thresholds import ThresholdsConfig
from patchcover.domain.errors import ReportSummaryError
from patchcover.domain.models.coverage_report import CoverageReport

logger = logging.getLogger(__name__)

PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)%")
STATEMENTS_RE = re.compile(r"\((\d+)/(\d+)\)")


@dataclass(frozen=True)
class GateResult:
    """Outcome of a quality gate evaluation"""

    service_coverage: float
    patch_coverage: float
    service_threshold: float
    patch_threshold: float
    service_passed: bool
    patch_passed: bool

    @property
    def passed(self) -> bool:
        return self.service_passed and self.patch_passed

    def describe(self) -> str:
        """Human readable summary"""

        def status(ok: bool) -> str:
            return "passed" if ok else "failed"

        return (
            f"service coverage {self.service_coverage:.1f}% "
            f"(threshold {self.service_threshold:.1f}%): {status(self.service_passed)}\n"
            f"patch coverage {self.patch_coverage:.1f}% "
            f"(threshold {self.patch_threshold:.1f}%): {status(self.patch_passed)}"
        )


@dataclass(frozen=True)
class ReportSummary:
    """Coverage values read back from a rendered report"""

    service_coverage: float
    patch_coverage: float
    patch_cover_count: Optional[int] = None
    patch_num_stmt: Optional[int] = None


class QualityGate:
    """Checks service and patch coverage against thresholds"""

    def __init__(self, thresholds: ThresholdsConfig):
        self.thresholds = thresholds

    def evaluate(self, service_coverage: float, patch_coverage: float) -> GateResult:
        """Evaluate coverage percentages

        Args:
            service_coverage: Repository-wide coverage percentage
            patch_coverage: Patch coverage percentage

        Returns:
            Gate result
        """
        result = GateResult(
            service_coverage=service_coverage,
            patch_coverage=patch_coverage,
            service_threshold=self.thresholds.service,
            patch_threshold=self.thresholds.patch,
            service_passed=service_coverage >= self.thresholds.service,
            patch_passed=patch_coverage >= self.thresholds.patch,
        )
        log = logger.info if result.passed else logger.warning
        log(f"Quality gate {'passed' if result.passed else 'failed'}")
        return result

    def evaluate_report(self, report: CoverageReport) -> GateResult:
        return self.evaluate(report.coverage, report.patch_coverage)


def parse_report_summary(text: str) -> ReportSummary:
    """Read coverage values from a report rendered with the default template

    Args:
        text: Rendered report

    Returns:
        Parsed summary

    Raises:
        ReportSummaryError: If the new or patch coverage line is missing
    """
    service_coverage = None
    patch_coverage = None
    cover_count = None
    num_stmt = None

    for line in text.splitlines():
        line = line.strip()
        if line.startswith("new coverage:"):
            match = PERCENT_RE.search(line)
            if match:
                service_coverage = float(match.group(1))
        elif line.startswith("patch coverage:"):
            match = PERCENT_RE.search(line)
            if match:
                patch_coverage = float(match.group(1))
            statements = STATEMENTS_RE.search(line)
            if statements:
                cover_count, num_stmt = int(statements.group(1)), int(statements.group(2))

    if service_coverage is None:
        raise ReportSummaryError("report has no 'new coverage' line")
    if patch_coverage is None:
        raise ReportSummaryError("report has no 'patch coverage' line")

    return ReportSummary(
        service_coverage=service_coverage,
        patch_coverage=patch_coverage,
        patch_cover_count=cover_count,
        patch_num_stmt=num_stmt,
    )
