"""Main application configuration model."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from patchcover.domain.config.output import OutputConfig
from patchcover.domain.config.suite import SuiteConfig
from patchcover.domain.config.thresholds import ThresholdsConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        repo_name: Repository name, used to build the module prefix of profile files
        module_prefix: Module path in front of the repository name
        test_type: Which test suite produced the coverage profile
        unit: Unit test settings
        integration: Integration test settings
        excluded_files_override: Exclusion patterns replacing the suite's list
        output: Report output configuration
    """

    repo_name: Optional[str] = None
    module_prefix: str = "github.com/org/"
    test_type: Literal["unit", "integration"] = "unit"
    unit: SuiteConfig = Field(default_factory=SuiteConfig)
    integration: SuiteConfig = Field(default_factory=SuiteConfig)
    excluded_files_override: Optional[List[str]] = None
    output: OutputConfig = Field(default_factory=OutputConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "repo_name": "payments",
                "module_prefix": "github.com/org/",
                "test_type": "unit",
                "unit": {
                    "thresholds": {"service": 60.0, "patch": 80.0},
                    "exclude": ["cmd/*", "*_mock.go"],
                },
                "integration": {
                    "thresholds": {"service": 40.0, "patch": 50.0},
                    "exclude": ["internal/testutil/*"],
                },
                "output": {
                    "format": "template",
                    "template": None,
                    "uncovered_lines_file": "uncovered_lines.txt",
                },
            }
        },
    )

    @property
    def active(self) -> SuiteConfig:
        """Settings of the configured test type"""
        return self.unit if self.test_type == "unit" else self.integration

    @property
    def thresholds(self) -> ThresholdsConfig:
        return self.active.thresholds

    @property
    def exclude_patterns(self) -> List[str]:
        """Exclusion patterns: the override if set, else the active suite's list"""
        if self.excluded_files_override is not None:
            return self.excluded_files_override
        return self.active.exclude

    @property
    def effective_module_prefix(self) -> str:
        """Prefix of profile file names for this repository"""
        if not self.repo_name:
            return ""
        return f"{self.module_prefix}{self.repo_name}/"
