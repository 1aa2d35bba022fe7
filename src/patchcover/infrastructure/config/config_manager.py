"""Configuration manager for loading and validating .patch-cover.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from patchcover.domain.config import AppConfig, OutputConfig, ThresholdsConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".patch-cover.yml"
DEFAULT_CONFIG_NAME = "default"

# TEST_TYPE values accepted from CI, including the labels used in status checks
TEST_TYPE_ALIASES = {
    "unit": "unit",
    "unit test": "unit",
    "ut": "unit",
    "integration": "integration",
    "integration test": "integration",
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .patch-cover.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. Config file: explicit path, else <PATCH_COVER_CONFIG_DIR>/<repo>.yml
       (falling back to default.yml), else .patch-cover.yml searched from current directory
    3. Environment variables (REPO_NAME, TEST_TYPE, EXCLUDED_CODE_FILES)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "repo_name": None,
        "module_prefix": "github.com/org/",
        "test_type": "unit",
        "unit": {
            "thresholds": {"service": 0.0, "patch": 0.0},
            "exclude": [],
        },
        "integration": {
            "thresholds": {"service": 0.0, "patch": 0.0},
            "exclude": [],
        },
        "excluded_files_override": None,
        "output": {
            "format": "template",
            "template": None,
            "uncovered_lines_file": "uncovered_lines.txt",
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to config file (searched for if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find the config file for this run

        Returns:
            Path to config file or None if not found
        """
        config_dir = os.getenv("PATCH_COVER_CONFIG_DIR")
        if config_dir:
            repo_name = os.getenv("REPO_NAME") or DEFAULT_CONFIG_NAME
            for name in (repo_name, DEFAULT_CONFIG_NAME):
                config_file = Path(config_dir) / f"{name}.yml"
                if config_file.exists():
                    logger.info(f"Found config file: {config_file}")
                    return config_file
            logger.info(f"No config for {repo_name} in {config_dir}")

        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                if isinstance(file_config, dict):
                    config_dict = self._merge_config(config_dict, file_config)
                    logger.info(f"Loaded configuration from {self.config_path}")
                else:
                    logger.warning(f"Ignoring {self.config_path}: top level must be a mapping")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        if os.getenv("REPO_NAME"):
            config["repo_name"] = os.getenv("REPO_NAME")

        test_type = os.getenv("TEST_TYPE")
        if test_type:
            # Unknown values are passed through so validation reports them
            config["test_type"] = TEST_TYPE_ALIASES.get(test_type.strip().lower(), test_type)

        excluded = os.getenv("EXCLUDED_CODE_FILES")
        if self._is_excluded_files_overridden(excluded):
            logger.info("Exclude code files parameter set, overriding the config values")
            config["excluded_files_override"] = self._split_patterns(excluded)

        return config

    @staticmethod
    def _is_excluded_files_overridden(value: Optional[str]) -> bool:
        # Workflow templates leave "=jsonpath" behind when the parameter is unset
        if not value:
            return False
        return "=jsonpath" not in value

    @staticmethod
    def _split_patterns(value: str) -> List[str]:
        return [part.strip() for part in value.split(",") if part.strip()]

    def get_thresholds(self) -> ThresholdsConfig:
        """Get thresholds of the configured test type

        Returns:
            Thresholds configuration model
        """
        return self.config.thresholds

    def get_exclude_patterns(self) -> List[str]:
        """Get exclusion patterns for profile files

        Returns:
            List of exclusion patterns
        """
        return self.config.exclude_patterns

    def get_module_prefix(self) -> str:
        return self.config.effective_module_prefix

    def get_output_config(self) -> OutputConfig:
        """Get output configuration

        Returns:
            Output configuration model
        """
        return self.config.output

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "unit.thresholds.patch" or "output")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
