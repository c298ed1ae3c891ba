"""Billing period calculations.

Usage-based pricing is billed on windows that start on a fixed day of the
month rather than on calendar-month boundaries. A period is named after the
month in which it starts.
"""

from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict, Field

from core.constants import DEFAULT_BILLING_CYCLE_DAY


class BillingPeriod(BaseModel):
    """A usage-based billing period identified by its starting month."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int
    cycle_day: int = Field(default=DEFAULT_BILLING_CYCLE_DAY, ge=1, le=28)

    def previous(self) -> "BillingPeriod":
        """Return the period immediately before this one."""
        if self.month == 1:
            return BillingPeriod(month=12, year=self.year - 1, cycle_day=self.cycle_day)
        return BillingPeriod(
            month=self.month - 1, year=self.year, cycle_day=self.cycle_day
        )

    def next(self) -> "BillingPeriod":
        """Return the period immediately after this one."""
        if self.month == 12:
            return BillingPeriod(month=1, year=self.year + 1, cycle_day=self.cycle_day)
        return BillingPeriod(
            month=self.month + 1, year=self.year, cycle_day=self.cycle_day
        )

    @property
    def start(self) -> date:
        """First day of the period."""
        return date(self.year, self.month, self.cycle_day)

    @property
    def end(self) -> date:
        """Last day of the period, inclusive."""
        following = self.next()
        return following.start - timedelta(days=1)

    def contains(self, day: date) -> bool:
        """Check whether a date falls inside the period."""
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.month:02d}/{self.year}"


def current_period(
    today: date, cycle_day: int = DEFAULT_BILLING_CYCLE_DAY
) -> BillingPeriod:
    """Get the usage-based period that contains today.

    Args:
        today: Reference date
        cycle_day: Day of month on which periods start

    Returns:
        This month's period once the cycle day is reached, else last month's
    """
    this_month = BillingPeriod(month=today.month, year=today.year, cycle_day=cycle_day)
    if today.day >= cycle_day:
        return this_month
    return this_month.previous()


def billing_periods(
    today: date, cycle_day: int = DEFAULT_BILLING_CYCLE_DAY
) -> tuple[BillingPeriod, BillingPeriod]:
    """Get the (current, last) pair of periods aggregated each cycle."""
    current = current_period(today, cycle_day)
    return current, current.previous()
