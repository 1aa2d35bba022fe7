"""Error types raised by patch-cover"""


class PatchCoverError(Exception):
    """Base class for patch-cover errors."""

    pass


class ParseError(PatchCoverError):
    """Input could not be parsed."""

    def __init__(self, message: str, line_number: int = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class DiffParseError(ParseError):
    """Unified diff is malformed."""

    pass


class ProfileParseError(ParseError):
    """Coverage profile is malformed."""

    pass


class TemplateRenderError(PatchCoverError):
    """Report template could not be rendered."""

    pass


class ReportSummaryError(PatchCoverError):
    """Rendered report does not contain the expected coverage values."""

    pass


class MissingInputError(PatchCoverError, FileNotFoundError):
    """Input file (diff or coverage profile) does not exist."""

    pass
