"""Persists the uncovered lines section for human review"""

import logging
from pathlib import Path
from typing import Union

from patchcover.domain.models.coverage_report import CoverageReport

logger = logging.getLogger(__name__)


def write_uncovered_lines(report: CoverageReport, path: Union[str, Path]) -> bool:
    """Write the report's uncovered lines to a file

    Failures are logged and swallowed so a broken side file never costs the
    coverage result.

    Args:
        report: Coverage report
        path: Destination file

    Returns:
        True if the file was written
    """
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(report.uncovered_lines)
    except OSError as e:
        logger.warning(f"Failed to write uncovered lines to {path}: {e}")
        return False
    logger.info(f"Uncovered lines have been saved to {path}")
    return True
