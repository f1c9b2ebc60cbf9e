"""
Configuration Loader
Loads cashdesk configuration from various sources
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from cashdesk.config.cashdesk_config import (
    CashdeskConfig,
    CashdeskEnvironment,
    ENV_VAR_MAPPING,
)
from cashdesk.config.config_validator import ConfigValidator
from cashdesk.exceptions import ConfigError


class ConfigLoader:
    """
    ConfigLoader class
    Provides multiple ways to load and merge configuration
    """

    def __init__(self) -> None:
        self._validator = ConfigValidator()

    def from_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load configuration from a JSON file

        Args:
            path: Path to JSON configuration file

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigError: If file not found or invalid JSON
        """
        file_path = Path(path).resolve()

        if not file_path.exists():
            raise ConfigError(
                f"Configuration file not found: {file_path}",
                code="CONFIG_FILE_NOT_FOUND"
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file: {file_path}",
                code="CONFIG_PARSE_ERROR"
            ) from e

        return self._process_relative_paths(config, file_path.parent)

    def from_environment(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables

        Returns:
            Configuration dictionary from environment variables
        """
        config: Dict[str, Any] = {}

        for env_var, config_key in ENV_VAR_MAPPING.items():
            value = os.environ.get(env_var)
            if value is not None and value != "":
                config[config_key] = self._parse_env_value(config_key, value)

        return config

    def from_dict(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of a programmatic configuration dictionary"""
        return config.copy()

    def merge(self, *sources: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configuration sources
        Priority: later sources override earlier sources
        """
        merged: Dict[str, Any] = {}

        for source in sources:
            merged.update(self._filter_none(source))

        return merged

    def resolve(self, config: Dict[str, Any]) -> CashdeskConfig:
        """
        Resolve configuration with defaults and validation

        Raises:
            ConfigError: If configuration is invalid
        """
        self._validator.validate_or_raise(config)
        return CashdeskConfig(**config)

    def load(
        self,
        file: Optional[Union[str, Path]] = None,
        env: bool = True,
        config: Optional[Dict[str, Any]] = None,
    ) -> CashdeskConfig:
        """
        Load, merge, and resolve configuration from multiple sources

        Args:
            file: Path to JSON configuration file (optional)
            env: Whether to load from environment variables (default: True)
            config: Programmatic configuration dictionary (optional)

        Returns:
            Fully resolved CashdeskConfig object
        """
        sources: list[Dict[str, Any]] = []

        if file is not None:
            sources.append(self.from_file(file))

        if env:
            sources.append(self.from_environment())

        if config is not None:
            sources.append(config)

        merged = self.merge(*sources)
        return self.resolve(merged)

    def create_template(self, path: Union[str, Path]) -> None:
        """
        Create a configuration template file

        Args:
            path: Path to write template
        """
        template = {
            "environment": "development",
            "base_url": "http://127.0.0.1:8000/api",
            "auth_token": "YOUR_ACCESS_TOKEN",
            "timeout": 30000,
            "retry_attempts": 3,
            "retry_delay": 1000,
            "enable_audit_log": True,
            "audit_log_path": "./logs/cashdesk-audit.log",
            "pdf_output_dir": "./closures",
        }

        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(template, f, indent=2)

    def _parse_env_value(self, key: str, value: str) -> Any:
        """Parse environment variable value to appropriate type"""
        if key == "enable_audit_log":
            return value.lower() in ("true", "1", "yes")

        if key in ("timeout", "retry_attempts", "retry_delay"):
            try:
                return int(value)
            except ValueError:
                return value

        if key == "environment":
            try:
                return CashdeskEnvironment(value.lower())
            except ValueError:
                return value

        return value

    def _process_relative_paths(
        self, config: Dict[str, Any], base_path: Path
    ) -> Dict[str, Any]:
        """Resolve output paths relative to the config file"""
        processed = config.copy()

        for key in ("audit_log_path", "pdf_output_dir"):
            value = processed.get(key)
            if isinstance(value, str) and value:
                candidate = Path(value)
                if not candidate.is_absolute():
                    processed[key] = str(base_path / candidate)

        return processed

    def _filter_none(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Filter out None values from config dictionary"""
        return {k: v for k, v in config.items() if v is not None}
