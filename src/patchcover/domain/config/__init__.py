"""Configuration models with Pydantic validation."""

from patchcover.domain.config.app import AppConfig
from patchcover.domain.config.output import OutputConfig
from patchcover.domain.config.suite import SuiteConfig
from patchcover.domain.config.thresholds import ThresholdsConfig

__all__ = [
    "AppConfig",
    "OutputConfig",
    "SuiteConfig",
    "ThresholdsConfig",
]
