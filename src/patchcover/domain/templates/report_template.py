"""Report templates"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from patchcover.domain.errors import TemplateRenderError
from patchcover.domain.models.coverage_report import CoverageReport, UncoveredFile

UNCOVERED_SECTION_START = "<pre>\n"
UNCOVERED_SECTION_END = "\n-----------------------\n</pre>\n"


def render_uncovered_lines(uncovered_files: Iterable[UncoveredFile]) -> str:
    """Render uncovered lines grouped per file

    Files without uncovered lines are skipped.

    Args:
        uncovered_files: Uncovered lines per file

    Returns:
        Text with one <pre> section per file
    """
    sections = []
    for uncovered in uncovered_files:
        if not uncovered.lines:
            continue
        parts = [UNCOVERED_SECTION_START, f"Uncovered lines in {uncovered.file_name}:\n"]
        for line in uncovered.lines:
            parts.append(f"LineNum: {line.line_num}\n")
            parts.append(f"Lines:\n <code>{line.line_string}</code>\n")
        parts.append(UNCOVERED_SECTION_END)
        sections.append("".join(parts))
    return "".join(sections)


class ReportTemplateRenderer:
    """Renders a CoverageReport with a str.format template

    Every CoverageReport field is available as a placeholder, together with
    previous_coverage, the pre-rendered baseline line of the default template.
    """

    DEFAULT_TEMPLATE = """{previous_coverage}
new coverage: {coverage:.1f}% of statements
patch coverage: {patch_coverage:.1f}% of changed statements ({patch_cover_count}/{patch_num_stmt})
uncovered lines : {uncovered_lines}
"""

    def __init__(self, custom_template: Optional[str] = None):
        """Initialize renderer

        Args:
            custom_template: Template override (uses default if None or empty)
        """
        self.template = custom_template or self.DEFAULT_TEMPLATE

    @staticmethod
    def _previous_coverage_line(report: CoverageReport) -> str:
        if report.has_prev_coverage:
            return f"previous coverage: {report.prev_coverage:.1f}% of statements"
        return "previous coverage: unknown"

    def _fields(self, report: CoverageReport) -> Dict[str, Any]:
        fields = report.to_dict()
        fields["previous_coverage"] = self._previous_coverage_line(report)
        fields["coverage_delta"] = report.coverage_delta
        return fields

    def render(self, report: CoverageReport) -> str:
        """Render report

        Args:
            report: Coverage report

        Returns:
            Rendered text

        Raises:
            TemplateRenderError: If the template is malformed or uses an unknown placeholder
        """
        try:
            return self.template.format(**self._fields(report))
        except KeyError as e:
            raise TemplateRenderError(f"Unknown template placeholder: {e.args[0]}") from e
        except (IndexError, ValueError, AttributeError) as e:
            raise TemplateRenderError(f"Invalid report template: {e}") from e
