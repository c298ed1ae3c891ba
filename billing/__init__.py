"""Billing dashboard client and usage parsing."""

from .aggregator import MonthlyUsageAggregator
from .client import CursorBillingClient
from .exceptions import (
    BillingAPIError,
    BillingAuthError,
    BillingError,
    BillingResponseError,
    BillingTimeoutError,
)
from .parser import BillingItemParser, ModelRule
from .periods import BillingPeriod, billing_periods, current_period

__all__ = [
    "BillingError",
    "BillingAPIError",
    "BillingAuthError",
    "BillingTimeoutError",
    "BillingResponseError",
    "BillingItemParser",
    "ModelRule",
    "MonthlyUsageAggregator",
    "CursorBillingClient",
    "BillingPeriod",
    "billing_periods",
    "current_period",
]
