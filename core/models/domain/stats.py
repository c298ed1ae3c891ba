"""Result bundles handed to the display."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from billing.periods import BillingPeriod
from core.models.domain.usage import MonthlyUsage, PremiumRequestUsage, UsageBasedStatus
from core.types import StatsState


class StatsBundle(BaseModel):
    """Fully computed, immutable output of one polling cycle."""

    model_config = ConfigDict(frozen=True)

    state: StatsState
    generated_at: datetime = Field(default_factory=datetime.now)

    # Premium request quota
    premium: PremiumRequestUsage | None = None
    premium_percent: int | None = Field(
        default=None, description="Premium utilization, may exceed 100"
    )
    premium_remaining_percent: str | None = Field(
        default=None, description="Smart-formatted remaining quota, clamped 0-100"
    )

    # Usage-based pricing
    usage_based: UsageBasedStatus | None = None
    active_period: BillingPeriod | None = None
    is_fallback_period: bool = Field(
        default=False,
        description="True when the current period had no items and the last one is shown",
    )
    active_usage: MonthlyUsage | None = None
    usage_based_percent: float | None = None
    usage_based_percent_display: str | None = None

    # Degraded states
    message: str | None = None
    consecutive_error_count: int = 0
    retry_in_seconds: float | None = None

    @classmethod
    def failed(cls, message: str, consecutive_error_count: int) -> "StatsBundle":
        """Bundle for a failed cycle while polling continues."""
        return cls(
            state=StatsState.ERROR,
            message=message,
            consecutive_error_count=consecutive_error_count,
        )

    @classmethod
    def suspended(
        cls,
        retry_in_seconds: float,
        consecutive_error_count: int,
        message: str | None = None,
    ) -> "StatsBundle":
        """Bundle shown while polling is suspended by a cooldown."""
        return cls(
            state=StatsState.SUSPENDED,
            retry_in_seconds=retry_in_seconds,
            consecutive_error_count=consecutive_error_count,
            message=message or f"Polling suspended, retry in {retry_in_seconds:.0f}s",
        )

    @classmethod
    def no_token(cls) -> "StatsBundle":
        """Bundle shown when no session token is available."""
        return cls(state=StatsState.NO_TOKEN, message="No session token available")
