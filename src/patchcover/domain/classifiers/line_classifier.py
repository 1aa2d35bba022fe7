"""Line classification for patch coverage accounting

Coverage profiles attribute statements to whole blocks, so a block touched by a
patch may span lines that carry no executable code. Lines a classifier reports
as invalid are taken out of the patch statement count.
"""

from typing import Protocol


class LineClassifier(Protocol):
    """Decides whether an added line should be excluded from patch coverage"""

    def is_invalid(self, line: str) -> bool:
        ...


class GoLineClassifier:
    """Textual heuristic for Go sources: comments, blank lines and struct tags"""

    COMMENT_PREFIXES = ("//", "/*")
    COMMENT_SUFFIXES = ("*/",)
    TAG_MARKERS = ("`json:",)

    def is_invalid(self, line: str) -> bool:
        """Check whether a line carries no executable code

        Args:
            line: Raw line text

        Returns:
            True if the line is blank, a comment or holds a struct tag
        """
        line = line.strip()
        if not line:
            return True
        if line.startswith(self.COMMENT_PREFIXES) or line.endswith(self.COMMENT_SUFFIXES):
            return True
        return any(marker in line for marker in self.TAG_MARKERS)


_default_classifier = GoLineClassifier()


def is_invalid_line(line: str) -> bool:
    """Classify a line with the default Go classifier"""
    return _default_classifier.is_invalid(line)
