"""Output configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel


class OutputConfig(BaseModel):
    """Configuration for report output.

    Attributes:
        format: Output format (template or json)
        template: Report template override (None = default template)
        uncovered_lines_file: Side file for uncovered lines (None = don't write)
    """

    format: Literal["template", "json"] = "template"
    template: Optional[str] = None
    uncovered_lines_file: Optional[str] = "uncovered_lines.txt"
