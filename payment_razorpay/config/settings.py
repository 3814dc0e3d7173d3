"""Provider settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import Any, Mapping, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from payment_razorpay.core.exceptions import ConfigurationError

REQUIRED_OPTIONS = ("key_id", "key_secret")


class ProviderSettings(BaseSettings):
    """Razorpay provider settings loaded from RAZORPAY_* environment variables."""

    # Razorpay Configuration
    key_id: str = Field(..., description="Razorpay API key id (rzp_test_... / rzp_live_...)")
    key_secret: SecretStr = Field(..., description="Razorpay API key secret")
    webhook_secret: Optional[SecretStr] = Field(
        default=None, description="Webhook signing secret; webhooks are rejected when unset"
    )
    receipt_prefix: str = Field(default="session", description="Prefix for order receipts")

    # Application Configuration
    app_name: str = Field(default="payment-razorpay", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    model_config = SettingsConfigDict(
        env_prefix="RAZORPAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("key_id")
    @classmethod
    def validate_key_id(cls, v: str) -> str:
        """Validate Razorpay key id format."""
        if not v.startswith("rzp_test_") and not v.startswith("rzp_live_"):
            raise ValueError(
                "Invalid Razorpay key id format. Must start with 'rzp_test_' or 'rzp_live_'"
            )
        return v

    @field_validator("key_secret")
    @classmethod
    def validate_key_secret(cls, v: SecretStr) -> SecretStr:
        """Reject an empty key secret."""
        if not v.get_secret_value():
            raise ValueError("key_secret must not be empty")
        return v

    @field_validator("webhook_secret")
    @classmethod
    def blank_webhook_secret_is_unset(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Treat an empty webhook secret as not configured."""
        if v is not None and not v.get_secret_value():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    @property
    def is_test_mode(self) -> bool:
        """Check if using Razorpay test keys."""
        return self.key_id.startswith("rzp_test_")

    @property
    def webhook_secret_configured(self) -> bool:
        """Whether webhook authenticity checks are enabled."""
        return self.webhook_secret is not None


def validate_options(options: Mapping[str, Any]) -> None:
    """
    Check that the required provider options are present.

    Args:
        options: Provider options (key_id, key_secret, webhook_secret, ...)

    Raises:
        ConfigurationError: If key_id or key_secret is missing
    """
    for name in REQUIRED_OPTIONS:
        value = options.get(name)
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if not value:
            raise ConfigurationError(f"{name} is required for Razorpay provider")


def load_settings(options: Optional[Mapping[str, Any]] = None) -> ProviderSettings:
    """
    Build provider settings from explicit options or the environment.

    Args:
        options: Optional explicit options; environment is used when omitted

    Returns:
        ProviderSettings: Validated settings

    Raises:
        ConfigurationError: If required options are missing or invalid
    """
    try:
        if options is None:
            return ProviderSettings()
        validate_options(options)
        return ProviderSettings(**dict(options))
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in e.errors()
        )
        raise ConfigurationError(f"Invalid Razorpay provider configuration: {fields}") from e


@lru_cache()
def get_settings() -> ProviderSettings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return load_settings()
