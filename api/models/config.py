"""Configuration models for API responses."""

from pydantic import BaseModel


class PollingConfigResponse(BaseModel):
    """Response model for polling configuration."""

    refresh_interval_seconds: int
    error_threshold: int
    cooldown_seconds: int
    countdown_interval_seconds: float
    billing_cycle_day: int
    max_percent_decimals: int
    polling_enabled: bool
