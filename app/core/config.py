"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, channel credentials, VAPID keys, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="notimon",
        description="MongoDB database name"
    )

    # Daily sequencing
    DAY_TIMEZONE: str = Field(
        default="UTC",
        description="IANA timezone that defines the calendar day of the ledger"
    )
    BROADCAST_CONCURRENCY: int = Field(
        default=5,
        description="Maximum number of users processed concurrently by the daily broadcast"
    )
    CRON_SECRET: Optional[str] = Field(
        default=None,
        description="Shared secret expected in X-Cron-Secret by the broadcast trigger"
    )

    # Telegram
    TELEGRAM_BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="Telegram Bot API token"
    )
    TELEGRAM_API_BASE_URL: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Expected X-Telegram-Bot-Api-Secret-Token header value"
    )

    # WhatsApp Cloud API
    WHATSAPP_ACCESS_TOKEN: Optional[str] = Field(
        default=None,
        description="WhatsApp Cloud API bearer token"
    )
    WHATSAPP_PHONE_NUMBER_ID: Optional[str] = Field(
        default=None,
        description="WhatsApp business phone number id"
    )
    WHATSAPP_API_BASE_URL: str = Field(
        default="https://graph.facebook.com",
        description="WhatsApp Cloud API base URL"
    )
    WHATSAPP_API_VERSION: str = Field(
        default="v19.0",
        description="Graph API version"
    )
    WHATSAPP_WEBHOOK_TOKEN: Optional[str] = Field(
        default=None,
        description="Verify token for the webhook subscription handshake"
    )
    FACEBOOK_APP_SECRET: Optional[str] = Field(
        default=None,
        description="App secret used to verify X-Hub-Signature-256"
    )
    WHATSAPP_START_TEMPLATE: str = Field(
        default="start_conversation",
        description="Pre-approved template that opens the day's conversation"
    )
    WHATSAPP_TEMPLATE_LANGUAGE: str = Field(
        default="en_US",
        description="Language code of the start template"
    )

    # Web Push
    VAPID_PUBLIC_KEY: Optional[str] = Field(
        default=None,
        description="VAPID public key handed to browsers"
    )
    VAPID_PRIVATE_KEY: Optional[str] = Field(
        default=None,
        description="VAPID private key used to sign push requests"
    )
    VAPID_CONTACT: str = Field(
        default="admin@example.com",
        description="Contact e-mail placed in the VAPID sub claim"
    )
    APP_URL: str = Field(
        default="http://localhost:8000",
        description="Public base URL of the questions page (used in push payloads)"
    )

    # Outbound calls
    TRANSPORT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout applied to every outbound transport call"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("DAY_TIMEZONE")
    def validate_day_timezone(cls, v):
        """Reject timezones the interpreter cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown DAY_TIMEZONE: {v}")
        return v

    @validator("BROADCAST_CONCURRENCY")
    def validate_concurrency(cls, v):
        if v < 1:
            raise ValueError("BROADCAST_CONCURRENCY must be at least 1")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings(current: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    current = current or settings
    errors = []

    if not current.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    # Production-specific validations
    if current.is_production:
        if not current.FACEBOOK_APP_SECRET:
            errors.append("FACEBOOK_APP_SECRET is required in production")
        if not current.WHATSAPP_WEBHOOK_TOKEN:
            errors.append("WHATSAPP_WEBHOOK_TOKEN is required in production")
        if not current.CRON_SECRET:
            errors.append("CRON_SECRET is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
