"""
Configuration Validator
Validates cashdesk configuration with clear error messages
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from cashdesk.config.cashdesk_config import CashdeskEnvironment


@dataclass
class ConfigValidationErrorDetail:
    """Validation error detail"""
    field: str
    message: str
    value: Optional[Any] = None


@dataclass
class ConfigValidationResult:
    """Validation result"""
    valid: bool
    errors: List[ConfigValidationErrorDetail] = field(default_factory=list)


class ConfigValidator:
    """
    ConfigValidator class
    Provides comprehensive validation for cashdesk configuration
    """

    def __init__(self) -> None:
        self._errors: List[ConfigValidationErrorDetail] = []

    def validate(self, config: Dict[str, Any]) -> ConfigValidationResult:
        """
        Validate the entire configuration dictionary

        Args:
            config: Configuration dictionary to validate

        Returns:
            ConfigValidationResult with any errors
        """
        self._errors = []

        self._validate_formats(config)
        self._validate_ranges(config)
        self._validate_environment(config)

        return ConfigValidationResult(
            valid=len(self._errors) == 0,
            errors=self._errors.copy()
        )

    def validate_or_raise(self, config: Dict[str, Any]) -> None:
        """
        Validate and raise if invalid

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        from cashdesk.exceptions import ConfigError

        result = self.validate(config)
        if not result.valid:
            error_messages = "; ".join(
                f"{e.field}: {e.message}" for e in result.errors
            )
            raise ConfigError(
                f"Configuration validation failed: {error_messages}",
                code="CONFIG_INVALID",
                details={"fields": [e.field for e in result.errors]},
            )

    def _validate_formats(self, config: Dict[str, Any]) -> None:
        """Validate field formats"""
        base_url = config.get("base_url")
        if base_url is not None and base_url != "":
            if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
                self._errors.append(ConfigValidationErrorDetail(
                    field="base_url",
                    message="base_url must be a valid HTTP/HTTPS URL",
                    value=base_url
                ))

        auth_token = config.get("auth_token")
        if auth_token is not None:
            if not isinstance(auth_token, str) or auth_token.strip() == "":
                self._errors.append(ConfigValidationErrorDetail(
                    field="auth_token",
                    message="auth_token cannot be empty",
                    value="[REDACTED]"
                ))

        for path_field in ["audit_log_path", "pdf_output_dir"]:
            path_value = config.get(path_field)
            if path_value is not None and path_value != "":
                if not isinstance(path_value, str):
                    self._errors.append(ConfigValidationErrorDetail(
                        field=path_field,
                        message=f"{path_field} must be a string",
                        value=path_value
                    ))

    def _validate_ranges(self, config: Dict[str, Any]) -> None:
        """Validate numeric ranges"""
        timeout = config.get("timeout")
        if timeout is not None:
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                self._errors.append(ConfigValidationErrorDetail(
                    field="timeout",
                    message="timeout must be a positive number (milliseconds)",
                    value=timeout
                ))
            elif timeout < 1000:
                self._errors.append(ConfigValidationErrorDetail(
                    field="timeout",
                    message="timeout should be at least 1000ms for reliable operation",
                    value=timeout
                ))
            elif timeout > 300000:
                self._errors.append(ConfigValidationErrorDetail(
                    field="timeout",
                    message="timeout should not exceed 300000ms (5 minutes)",
                    value=timeout
                ))

        retry_attempts = config.get("retry_attempts")
        if retry_attempts is not None:
            if not isinstance(retry_attempts, int) or retry_attempts < 0:
                self._errors.append(ConfigValidationErrorDetail(
                    field="retry_attempts",
                    message="retry_attempts must be a non-negative integer",
                    value=retry_attempts
                ))
            elif retry_attempts > 10:
                self._errors.append(ConfigValidationErrorDetail(
                    field="retry_attempts",
                    message="retry_attempts should not exceed 10",
                    value=retry_attempts
                ))

        retry_delay = config.get("retry_delay")
        if retry_delay is not None:
            if not isinstance(retry_delay, (int, float)) or retry_delay <= 0:
                self._errors.append(ConfigValidationErrorDetail(
                    field="retry_delay",
                    message="retry_delay must be a positive number (milliseconds)",
                    value=retry_delay
                ))
            elif retry_delay > 60000:
                self._errors.append(ConfigValidationErrorDetail(
                    field="retry_delay",
                    message="retry_delay should not exceed 60000ms (1 minute)",
                    value=retry_delay
                ))

    def _validate_environment(self, config: Dict[str, Any]) -> None:
        """Validate environment setting"""
        environment = config.get("environment")
        if environment is not None:
            valid_environments = [e.value for e in CashdeskEnvironment]
            env_value = environment.value if isinstance(environment, CashdeskEnvironment) else environment
            if env_value not in valid_environments:
                self._errors.append(ConfigValidationErrorDetail(
                    field="environment",
                    message=f"environment must be one of: {', '.join(valid_environments)}",
                    value=environment
                ))
