"""Coverage profile filtering by exclusion patterns"""

import logging
import re
from typing import List, Optional

from patchcover.domain.models.coverage_profile import CoverageProfile

logger = logging.getLogger(__name__)

# Generated serializers are never worth covering
ALWAYS_EXCLUDED_MARKERS = ("easyjson",)

PROFILE_FILE_RE = re.compile(r"^([^:]+):")


class ProfileFilter:
    """Drops profile files matching exclusion patterns

    Patterns are relative to the module root and use '*' for any run of
    characters, so 'internal/mocks/*' and '*_gen.go' both work.
    """

    def __init__(
        self,
        patterns: Optional[List[str]] = None,
        module_prefix: str = "",
    ):
        """Initialize profile filter

        Args:
            patterns: Exclusion patterns (entries may themselves be comma separated)
            module_prefix: Prefix of profile file names, e.g. "github.com/org/repo/"
        """
        self.patterns = [
            part.strip()
            for pattern in (patterns or [])
            for part in pattern.split(",")
            if part.strip()
        ]
        self.module_prefix = module_prefix
        self._regexes = [self._compile(pattern) for pattern in self.patterns]

    def _compile(self, pattern: str) -> re.Pattern:
        full_pattern = self.module_prefix + pattern
        regex = re.escape(full_pattern).replace(r"\*", ".*")
        return re.compile(f"^{regex}$")

    def should_exclude(self, file_name: str) -> tuple[bool, str]:
        """Check if a profile file should be excluded

        Args:
            file_name: File name as written in the profile

        Returns:
            Tuple of (should_exclude, reason)
        """
        for marker in ALWAYS_EXCLUDED_MARKERS:
            if marker in file_name:
                return True, f"generated file ({marker})"

        for pattern, regex in zip(self.patterns, self._regexes):
            if regex.match(file_name):
                return True, f"matches pattern: {pattern}"

        return False, ""

    def filter_profiles(
        self, profiles: List[CoverageProfile]
    ) -> tuple[List[CoverageProfile], List[tuple[CoverageProfile, str]]]:
        """Filter parsed profiles

        Args:
            profiles: Profiles to filter

        Returns:
            Tuple of (kept_profiles, excluded_profiles_with_reasons)
        """
        kept = []
        excluded = []

        for profile in profiles:
            should_exclude, reason = self.should_exclude(profile.file_name)
            if should_exclude:
                excluded.append((profile, reason))
                logger.debug(f"Excluding {profile.file_name}: {reason}")
            else:
                kept.append(profile)

        if excluded:
            logger.info(f"Excluded {len(excluded)} files from coverage, {len(kept)} files remaining")

        return kept, excluded

    def filter_profile_text(self, content: str) -> str:
        """Remove block lines of excluded files from raw profile text

        The mode line is kept; blank and unrecognised lines are dropped.

        Args:
            content: Profile text

        Returns:
            Filtered profile text
        """
        kept_lines = []
        excluded_count = 0
        for raw in content.split("\n"):
            line = raw.strip()
            if not line:
                continue
            if line.startswith("mode: "):
                kept_lines.append(line)
                continue
            match = PROFILE_FILE_RE.match(line)
            if not match:
                continue
            should_exclude, reason = self.should_exclude(match.group(1))
            if should_exclude:
                excluded_count += 1
                logger.debug(f"Excluding profile line {line}: {reason}")
                continue
            kept_lines.append(line)

        if excluded_count:
            logger.info(f"Excluded {excluded_count} profile lines")
        return "\n".join(kept_lines) + "\n" if kept_lines else ""
