"""Configuration management for the cursor stats system."""

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    COOLDOWN_DURATION_SECONDS,
    COUNTDOWN_UPDATE_INTERVAL_SECONDS,
    DEFAULT_BILLING_CYCLE_DAY,
    DEFAULT_ERROR_THRESHOLD,
    DEFAULT_MAX_PERCENT_DECIMALS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    MIN_REFRESH_INTERVAL_SECONDS,
)
from .cooldown import CooldownConfig
from .types import Environment

ENV_PREFIX = "CURSOR_STATS_"

_TRUTHY = ["true", "1", "yes", "on"]


class Settings(BaseModel):
    """Application settings."""

    # Environment
    version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production/testing)",
    )

    # API Settings
    api_title: str = Field(default="Cursor Stats API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # CORS Settings
    cors_allow_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Billing API Settings
    api_base_url: str = Field(
        default="https://cursor.com/api", description="Billing dashboard API base URL"
    )
    request_timeout: float = Field(
        default=30.0, description="Timeout for billing API requests in seconds"
    )
    token_env_var: str = Field(
        default="CURSOR_SESSION_TOKEN",
        description="Environment variable holding the dashboard session token",
    )

    # Polling Settings
    refresh_interval_seconds: int = Field(
        default=DEFAULT_REFRESH_INTERVAL_SECONDS,
        description="Interval between polling cycles in seconds",
    )
    error_threshold: int = Field(
        default=DEFAULT_ERROR_THRESHOLD,
        ge=1,
        description="Consecutive failures before entering cooldown",
    )
    cooldown_seconds: int = Field(
        default=COOLDOWN_DURATION_SECONDS,
        gt=0,
        description="How long polling stays suspended after repeated failures",
    )
    countdown_interval_seconds: float = Field(
        default=COUNTDOWN_UPDATE_INTERVAL_SECONDS,
        gt=0,
        description="Interval between cooldown countdown updates in seconds",
    )
    polling_enabled: bool = Field(
        default=True, description="Whether background polling starts with the app"
    )

    # Usage Settings
    billing_cycle_day: int = Field(
        default=DEFAULT_BILLING_CYCLE_DAY,
        ge=1,
        le=28,
        description="Day of month on which a usage-based billing period starts",
    )
    max_percent_decimals: int = Field(
        default=DEFAULT_MAX_PERCENT_DECIMALS,
        ge=0,
        description="Maximum decimals shown for smart-formatted percentages",
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        # Never poll faster than the minimum interval
        if self.refresh_interval_seconds < MIN_REFRESH_INTERVAL_SECONDS:
            self.refresh_interval_seconds = MIN_REFRESH_INTERVAL_SECONDS

        # Tests drive polling explicitly
        if self.environment == Environment.TESTING:
            self.polling_enabled = False

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == Environment.TESTING

    def cooldown_config(self) -> CooldownConfig:
        """Build the cooldown controller parameters from these settings."""
        return CooldownConfig(
            error_threshold=self.error_threshold,
            cooldown_seconds=self.cooldown_seconds,
            poll_interval_seconds=self.refresh_interval_seconds,
        )


def load_settings() -> Settings:
    """Load settings from environment variables."""

    # Load .env file if it exists
    load_dotenv()

    # Parse CORS origins from comma-separated string
    cors_origins_str = os.getenv(f"{ENV_PREFIX}CORS_ORIGINS", "*")
    if cors_origins_str == "*":
        cors_origins = ["*"]
    else:
        cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

    polling_enabled = (
        os.getenv(f"{ENV_PREFIX}POLLING_ENABLED", "true").lower() in _TRUTHY
    )

    return Settings(
        environment=Environment(os.getenv(f"{ENV_PREFIX}ENV", "development")),
        api_title=os.getenv(f"{ENV_PREFIX}API_TITLE", "Cursor Stats API"),
        api_version=os.getenv(f"{ENV_PREFIX}API_VERSION", "1.0.0"),
        cors_allow_origins=cors_origins,
        log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
        api_base_url=os.getenv(f"{ENV_PREFIX}API_BASE_URL", "https://cursor.com/api"),
        request_timeout=float(os.getenv(f"{ENV_PREFIX}REQUEST_TIMEOUT", "30.0")),
        token_env_var=os.getenv(f"{ENV_PREFIX}TOKEN_ENV_VAR", "CURSOR_SESSION_TOKEN"),
        refresh_interval_seconds=int(
            os.getenv(
                f"{ENV_PREFIX}REFRESH_INTERVAL", str(DEFAULT_REFRESH_INTERVAL_SECONDS)
            )
        ),
        error_threshold=int(
            os.getenv(f"{ENV_PREFIX}ERROR_THRESHOLD", str(DEFAULT_ERROR_THRESHOLD))
        ),
        cooldown_seconds=int(
            os.getenv(f"{ENV_PREFIX}COOLDOWN_SECONDS", str(COOLDOWN_DURATION_SECONDS))
        ),
        countdown_interval_seconds=float(
            os.getenv(
                f"{ENV_PREFIX}COUNTDOWN_INTERVAL",
                str(COUNTDOWN_UPDATE_INTERVAL_SECONDS),
            )
        ),
        polling_enabled=polling_enabled,
        billing_cycle_day=int(
            os.getenv(f"{ENV_PREFIX}BILLING_CYCLE_DAY", str(DEFAULT_BILLING_CYCLE_DAY))
        ),
        max_percent_decimals=int(
            os.getenv(
                f"{ENV_PREFIX}MAX_PERCENT_DECIMALS", str(DEFAULT_MAX_PERCENT_DECIMALS)
            )
        ),
    )


# Global settings instance
settings = load_settings()
