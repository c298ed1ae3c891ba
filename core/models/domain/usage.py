"""Domain models for billing usage."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RawBillingItem(BaseModel):
    """One untyped billing line as returned by the dashboard."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., description="Free-text billing description")
    cents: float | None = Field(
        default=None, description="Line cost in cents, absent when not billable"
    )


class MonthlyInvoice(BaseModel):
    """Raw invoice data for one billing month."""

    model_config = ConfigDict(frozen=True)

    items: list[RawBillingItem] = Field(default_factory=list)
    has_unpaid_mid_month_invoice: bool = False


class UsageLineItem(BaseModel):
    """One parsed billing entry."""

    model_config = ConfigDict(frozen=True)

    model_name: str = Field(..., description="Resolved model name or unknown-model")
    request_count: int = Field(..., ge=1, description="Requests billed by the line")
    unit_cost_cents: float = Field(..., description="Cost per request in cents")
    total_cost_cents: float = Field(..., description="Line cost in cents")
    is_discounted: bool = False
    is_token_based: bool = False


class SkippedLine(BaseModel):
    """A billing line that bills nothing."""

    model_config = ConfigDict(frozen=True)

    reason: str


class CreditLine(BaseModel):
    """A mid-month payment credit."""

    model_config = ConfigDict(frozen=True)

    amount_cents: float = Field(..., ge=0)


class ParsedLine(BaseModel):
    """A billable line resolved to a usage item."""

    model_config = ConfigDict(frozen=True)

    item: UsageLineItem
    unknown_fragment: str | None = Field(
        default=None,
        description="Cleaned description text when the model could not be resolved",
    )


LineResult = SkippedLine | CreditLine | ParsedLine


class MonthlyUsage(BaseModel):
    """Aggregated usage for one billing month."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int
    items: tuple[UsageLineItem, ...] = ()
    mid_month_payment_cents: float = Field(default=0, ge=0)
    has_unpaid_mid_month_invoice: bool = False
    unknown_model_fragments: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def actual_total_cost_cents(self) -> float:
        """Sum of positive line costs; credits never count here."""
        return sum(
            item.total_cost_cents for item in self.items if item.total_cost_cents > 0
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unpaid_cents(self) -> float:
        """Cost still outstanding after mid-month payments."""
        return max(0, self.actual_total_cost_cents - self.mid_month_payment_cents)


class PremiumRequestUsage(BaseModel):
    """Current/limit pair for the premium request quota."""

    model_config = ConfigDict(frozen=True)

    current: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0, description="0 means unknown or unbounded")
    period_start: datetime | None = None


class UsageBasedStatus(BaseModel):
    """Whether usage-based pricing is on and its spending limit."""

    model_config = ConfigDict(frozen=True)

    is_enabled: bool = False
    limit: float | None = Field(default=None, description="Spending limit in dollars")
