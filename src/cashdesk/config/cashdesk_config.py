"""
Cashdesk Configuration Types and Schema
Type-safe configuration objects for the cashdesk SDK
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class CashdeskEnvironment(str, Enum):
    """Backend environment types"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


# Base URLs for backend environments
CASHDESK_BASE_URLS = {
    CashdeskEnvironment.DEVELOPMENT: "http://127.0.0.1:8000/api",
    CashdeskEnvironment.PRODUCTION: "https://api.gym-backoffice.co/api",
}


class ConfigDefaults:
    """Default configuration values"""
    ENVIRONMENT = CashdeskEnvironment.DEVELOPMENT
    TIMEOUT = 30000
    RETRY_ATTEMPTS = 3
    RETRY_DELAY = 1000
    ENABLE_AUDIT_LOG = True


# Environment variable mapping
ENV_VAR_MAPPING = {
    "CASHDESK_API_URL": "base_url",
    "CASHDESK_AUTH_TOKEN": "auth_token",
    "CASHDESK_ENVIRONMENT": "environment",
    "CASHDESK_TIMEOUT": "timeout",
    "CASHDESK_RETRY_ATTEMPTS": "retry_attempts",
    "CASHDESK_RETRY_DELAY": "retry_delay",
    "CASHDESK_ENABLE_AUDIT_LOG": "enable_audit_log",
    "CASHDESK_AUDIT_LOG_PATH": "audit_log_path",
    "CASHDESK_PDF_OUTPUT_DIR": "pdf_output_dir",
}


class CashdeskConfig(BaseModel):
    """
    Main cashdesk configuration class
    Defines all configuration options for the SDK
    """

    # Backend connection
    environment: CashdeskEnvironment = Field(
        default=CashdeskEnvironment.DEVELOPMENT,
        description="Environment: 'development' or 'production'"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Override default API base URL"
    )
    auth_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent in the Authorization header"
    )
    timeout: int = Field(
        default=ConfigDefaults.TIMEOUT,
        description="Request timeout in milliseconds",
        ge=1000,
        le=300000
    )
    retry_attempts: int = Field(
        default=ConfigDefaults.RETRY_ATTEMPTS,
        description="Number of retry attempts",
        ge=0,
        le=10
    )
    retry_delay: int = Field(
        default=ConfigDefaults.RETRY_DELAY,
        description="Base delay between retries in milliseconds",
        ge=1,
        le=60000
    )

    # Audit logging
    enable_audit_log: bool = Field(
        default=ConfigDefaults.ENABLE_AUDIT_LOG,
        description="Enable audit logging"
    )
    audit_log_path: Optional[str] = Field(
        default=None,
        description="File path for JSON-lines audit logs"
    )

    # Documents
    pdf_output_dir: Optional[str] = Field(
        default=None,
        description="Directory where downloaded closure PDFs are written"
    )

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate base_url is a valid URL"""
        if v is not None and v != "":
            if not v.startswith(("http://", "https://")):
                raise ValueError("base_url must be a valid HTTP/HTTPS URL")
            return v.rstrip("/")
        return v

    @model_validator(mode="after")
    def set_default_base_url(self) -> "CashdeskConfig":
        """Set default base_url based on environment if not provided"""
        if not self.base_url:
            self.base_url = CASHDESK_BASE_URLS[self.environment]
        return self

    def get_resolved_base_url(self) -> str:
        """Get the resolved base URL"""
        return self.base_url or CASHDESK_BASE_URLS[self.environment]


class PartialCashdeskConfig(BaseModel):
    """
    Partial configuration for merging from multiple sources
    All fields are optional to allow partial configuration
    """

    environment: Optional[CashdeskEnvironment] = None
    base_url: Optional[str] = None
    auth_token: Optional[str] = None
    timeout: Optional[int] = None
    retry_attempts: Optional[int] = None
    retry_delay: Optional[int] = None
    enable_audit_log: Optional[bool] = None
    audit_log_path: Optional[str] = None
    pdf_output_dir: Optional[str] = None

    model_config = {
        "str_strip_whitespace": True,
    }
