"""Per test suite configuration model."""

from typing import List

from pydantic import BaseModel, Field

from patchcover.domain.config.thresholds import ThresholdsConfig


class SuiteConfig(BaseModel):
    """Settings that differ between unit and integration test runs.

    Attributes:
        thresholds: Quality gate thresholds
        exclude: Exclusion patterns for profile files, relative to the module root
    """

    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    exclude: List[str] = Field(default_factory=list)
