"""Go coverage profile parser

Profiles look like:
    mode: set
    github.com/org/repo/pkg/file.go:10.2,12.16 2 1
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from patchcover.domain.errors import MissingInputError, ProfileParseError
from patchcover.domain.models.coverage_profile import CoverageProfile, ProfileBlock

logger = logging.getLogger(__name__)

MODE_PREFIX = "mode: "
VALID_MODES = ("set", "count", "atomic")
BLOCK_LINE_RE = re.compile(r"^(.+):(\d+)\.(\d+),(\d+)\.(\d+) (\d+) (\d+)$")


def _merge_blocks(profile: CoverageProfile) -> None:
    """Sort blocks and merge duplicate spans reported by several test binaries"""
    profile.blocks.sort(key=lambda b: (b.start_line, b.start_col))
    merged: List[ProfileBlock] = []
    for block in profile.blocks:
        last = merged[-1] if merged else None
        if (
            last is None
            or (last.start_line, last.start_col, last.end_line, last.end_col)
            != (block.start_line, block.start_col, block.end_line, block.end_col)
        ):
            merged.append(block)
            continue
        if last.num_stmt != block.num_stmt:
            raise ProfileParseError(
                f"inconsistent statement count for {profile.file_name}:"
                f"{block.start_line}.{block.start_col},{block.end_line}.{block.end_col}"
            )
        if profile.mode == "set":
            last.count |= block.count
        else:
            last.count += block.count
    profile.blocks = merged


def parse_profiles(content: str) -> List[CoverageProfile]:
    """Parse Go coverage profile text

    Args:
        content: Profile text

    Returns:
        Profiles sorted by file name, blocks sorted by position

    Raises:
        ProfileParseError: If the mode line or a block line is malformed
    """
    mode: Optional[str] = None
    profiles: Dict[str, CoverageProfile] = {}

    for line_number, raw in enumerate(content.split("\n"), start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith(MODE_PREFIX):
            line_mode = line[len(MODE_PREFIX):].strip()
            if line_mode not in VALID_MODES:
                raise ProfileParseError(f"unknown coverage mode: {line_mode!r}", line_number)
            if mode is not None and line_mode != mode:
                raise ProfileParseError(
                    f"mixed coverage modes: {mode!r} and {line_mode!r}", line_number
                )
            mode = line_mode
            continue

        if mode is None:
            raise ProfileParseError("missing mode line", line_number)

        match = BLOCK_LINE_RE.match(line)
        if not match:
            raise ProfileParseError(f"invalid block line: {line!r}", line_number)

        file_name = match.group(1)
        profile = profiles.get(file_name)
        if profile is None:
            profile = CoverageProfile(file_name=file_name, mode=mode)
            profiles[file_name] = profile
        start_line, start_col, end_line, end_col, num_stmt, count = (
            int(group) for group in match.groups()[1:]
        )
        profile.blocks.append(
            ProfileBlock(
                start_line=start_line,
                start_col=start_col,
                end_line=end_line,
                end_col=end_col,
                num_stmt=num_stmt,
                count=count,
            )
        )

    result = [profiles[name] for name in sorted(profiles)]
    for profile in result:
        _merge_blocks(profile)

    logger.debug(f"Parsed coverage profile with {len(result)} files")
    return result


def parse_profiles_file(path: Union[str, Path]) -> List[CoverageProfile]:
    """Read and parse a Go coverage profile file

    Args:
        path: Path to the profile

    Returns:
        List of CoverageProfile

    Raises:
        MissingInputError: If the file does not exist
        ProfileParseError: If the profile is malformed
    """
    path = Path(path)
    if not path.exists():
        raise MissingInputError(f"Coverage file not found: {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_profiles(f.read())
