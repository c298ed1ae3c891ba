"""Application constants and configuration values."""

from typing import Final

# Polling defaults (seconds)
DEFAULT_REFRESH_INTERVAL_SECONDS: Final[int] = 30
MIN_REFRESH_INTERVAL_SECONDS: Final[int] = 5
COOLDOWN_DURATION_SECONDS: Final[int] = 10 * 60
COUNTDOWN_UPDATE_INTERVAL_SECONDS: Final[float] = 1.0
DEFAULT_ERROR_THRESHOLD: Final[int] = 3

# Billing period rule
DEFAULT_BILLING_CYCLE_DAY: Final[int] = 3

# Percentage formatting
DEFAULT_MAX_PERCENT_DECIMALS: Final[int] = 3
PERCENT_EXACTNESS_TOLERANCE: Final[float] = 1e-10

# Synthetic model labels
UNKNOWN_MODEL: Final[str] = "unknown-model"
TOOL_CALLS_LABEL: Final[str] = "tool-calls"
FAST_PREMIUM_LABEL: Final[str] = "fast-premium"

# Credit line marker
MID_MONTH_PAYMENT_MARKER: Final[str] = "Mid-month usage paid"

# Fragments never reported as unknown models
GENERIC_USAGE_KEYWORDS: Final[frozenset[str]] = frozenset(
    {
        "usage",
        "calls",
        "request",
        "requests",
        "cents",
        "beyond",
        "month",
        "day",
        "january",
        "february",
        "march",
        "april",
        "may",
        "june",
        "july",
        "august",
        "september",
        "october",
        "november",
        "december",
        "premium",
        "extra",
        "tool",
        "fast",
        "thinking",
    }
)
