"""
Configuration module
"""

from cashdesk.config.cashdesk_config import (
    CashdeskConfig,
    PartialCashdeskConfig,
    CashdeskEnvironment,
    CASHDESK_BASE_URLS,
    ENV_VAR_MAPPING,
    ConfigDefaults,
)
from cashdesk.config.config_loader import ConfigLoader
from cashdesk.config.config_validator import (
    ConfigValidator,
    ConfigValidationResult,
    ConfigValidationErrorDetail,
)

__all__ = [
    "CashdeskConfig",
    "PartialCashdeskConfig",
    "CashdeskEnvironment",
    "CASHDESK_BASE_URLS",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
    "ConfigLoader",
    "ConfigValidator",
    "ConfigValidationResult",
    "ConfigValidationErrorDetail",
]
