"""Configuration router for API settings."""

from fastapi import APIRouter, Depends

from api.dependencies import get_settings
from api.models.config import PollingConfigResponse
from core.config import Settings

router = APIRouter(prefix="/v1/config", tags=["config"])


@router.get("/polling", response_model=PollingConfigResponse)
async def get_polling_config(
    settings: Settings = Depends(get_settings),
) -> PollingConfigResponse:
    """Get the effective polling configuration."""
    return PollingConfigResponse(
        refresh_interval_seconds=settings.refresh_interval_seconds,
        error_threshold=settings.error_threshold,
        cooldown_seconds=settings.cooldown_seconds,
        countdown_interval_seconds=settings.countdown_interval_seconds,
        billing_cycle_day=settings.billing_cycle_day,
        max_percent_decimals=settings.max_percent_decimals,
        polling_enabled=settings.polling_enabled,
    )
