"""Unified diff parser"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from patchcover.domain.errors import DiffParseError, MissingInputError
from patchcover.domain.models.file_change import DiffFile, DiffLine, Hunk, LineOp

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
DEV_NULL = "/dev/null"

_LINE_OPS = {
    " ": LineOp.CONTEXT,
    "-": LineOp.DELETE,
    "+": LineOp.ADD,
}


def _unquote(path: str) -> str:
    """Undo git quoting of paths with spaces or special characters"""
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return path


def _strip_path(raw: str, prefix: str) -> Optional[str]:
    """Remove timestamp, quotes and a/ or b/ prefix from a ---/+++ header path"""
    path = _unquote(raw.split("\t")[0].strip())
    if path == DEV_NULL:
        return None
    if path.startswith(prefix):
        path = path[len(prefix):]
    return path


def _parse_git_header(line: str) -> tuple[Optional[str], Optional[str]]:
    """Extract paths from 'diff --git a/old b/new'"""
    rest = line[len("diff --git "):].strip()
    if rest.startswith('"'):
        old, sep, new = rest.partition('" "')
        if not sep:
            return None, None
        return _strip_path(old + '"', "a/"), _strip_path('"' + new, "b/")
    idx = rest.rfind(" b/")
    if not rest.startswith("a/") or idx < 0:
        return None, None
    return rest[2:idx], rest[idx + 3:]


class _FileBuilder:
    """Accumulates headers and hunks of one file until the next file starts"""

    def __init__(self, old_path: Optional[str] = None, new_path: Optional[str] = None):
        self.old_path = old_path
        self.new_path = new_path
        self.status: Optional[str] = None
        self.is_binary = False
        self.hunks: List[Hunk] = []

    def build(self) -> DiffFile:
        new_name = self.new_path or self.old_path or "unknown"
        status = self.status
        if status is None:
            if self.old_path is None and self.new_path is not None:
                status = "added"
            elif self.new_path is None and self.old_path is not None:
                status = "deleted"
            elif self.old_path != self.new_path:
                status = "renamed"
            else:
                status = "modified"
        old_name = self.old_path if self.old_path != new_name else None
        return DiffFile(
            new_name=new_name,
            old_name=old_name,
            status=status,
            hunks=self.hunks,
            is_binary=self.is_binary,
        )


def _parse_hunk(lines: List[str], start: int) -> tuple[Hunk, int]:
    """Parse the hunk whose header is at lines[start]

    Args:
        lines: All diff lines
        start: Index of the @@ header

    Returns:
        Tuple of (hunk, index of the first line after the hunk)

    Raises:
        DiffParseError: If the header or the body is malformed
    """
    header = lines[start]
    match = HUNK_HEADER_RE.match(header)
    if not match:
        raise DiffParseError(f"invalid hunk header: {header!r}", start + 1)

    old_start = int(match.group(1))
    old_count = int(match.group(2)) if match.group(2) is not None else 1
    new_start = int(match.group(3))
    new_count = int(match.group(4)) if match.group(4) is not None else 1
    hunk = Hunk(old_start=old_start, old_count=old_count, new_start=new_start, new_count=new_count)

    old_left, new_left = old_count, new_count
    i = start + 1
    while old_left > 0 or new_left > 0:
        if i >= len(lines):
            raise DiffParseError(
                f"hunk ends early: expected {old_left} old and {new_left} new lines more", i
            )
        line = lines[i]
        i += 1
        if line.startswith("\\"):
            # "\ No newline at end of file"
            continue
        # Some tools strip the single space of empty context lines
        prefix, text = (line[0], line[1:]) if line else (" ", "")
        op = _LINE_OPS.get(prefix)
        if op is None:
            raise DiffParseError(f"unexpected line in hunk: {line!r}", i)
        if op != LineOp.ADD:
            old_left -= 1
        if op != LineOp.DELETE:
            new_left -= 1
        if old_left < 0 or new_left < 0:
            raise DiffParseError(f"hunk has more lines than its header declares: {header!r}", i)
        hunk.lines.append(DiffLine(op=op, text=text))

    return hunk, i


def parse_unified_diff(diff_content: str) -> List[DiffFile]:
    """Parse unified diff format into DiffFile objects

    Supports plain and git style unified diffs:
    diff --git a/file.go b/file.go
    --- a/file.go
    +++ b/file.go
    @@ -start,count +start,count @@
    -old line
    +new line

    Args:
        diff_content: Diff content as string

    Returns:
        List of DiffFile in diff order

    Raises:
        DiffParseError: If a hunk is malformed
    """
    lines = diff_content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    files: List[DiffFile] = []
    current: Optional[_FileBuilder] = None

    def finish() -> None:
        if current is not None:
            files.append(current.build())

    i = 0
    while i < len(lines):
        line = lines[i]

        if line.startswith("diff --git "):
            finish()
            current = _FileBuilder(*_parse_git_header(line))
        elif line.startswith("--- "):
            # Plain diffs have no "diff" line, "---" opens a new file
            if current is None or current.hunks:
                finish()
                current = _FileBuilder()
            current.old_path = _strip_path(line[4:], "a/")
        elif line.startswith("+++ "):
            if current is None:
                current = _FileBuilder()
            current.new_path = _strip_path(line[4:], "b/")
        elif current is not None and line.startswith("new file mode"):
            current.status = "added"
            current.old_path = None
        elif current is not None and line.startswith("deleted file mode"):
            current.status = "deleted"
        elif current is not None and line.startswith("rename from "):
            current.old_path = _unquote(line[len("rename from "):])
            current.status = "renamed"
        elif current is not None and line.startswith("rename to "):
            current.new_path = _unquote(line[len("rename to "):])
            current.status = "renamed"
        elif current is not None and line.startswith("Binary files "):
            current.is_binary = True
        elif line.startswith("@@"):
            if current is None:
                raise DiffParseError("hunk found before any file header", i + 1)
            hunk, i = _parse_hunk(lines, i)
            current.hunks.append(hunk)
            continue

        i += 1

    finish()
    logger.debug(f"Parsed diff with {len(files)} files")
    return files


def parse_diff_file(path: Union[str, Path]) -> List[DiffFile]:
    """Read and parse a unified diff file

    Args:
        path: Path to the diff

    Returns:
        List of DiffFile

    Raises:
        MissingInputError: If the file does not exist
        DiffParseError: If the diff is malformed
    """
    path = Path(path)
    if not path.exists():
        raise MissingInputError(f"Diff file not found: {path}")
    # Non-UTF-8 bytes in non-Go files must not abort the run
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_unified_diff(f.read())
