"""Usage percentage calculations.

All functions are pure. Divisions are guarded so a zero or negative limit
never produces NaN or infinity.
"""

import math

from .constants import DEFAULT_MAX_PERCENT_DECIMALS, PERCENT_EXACTNESS_TOLERANCE


def premium_utilization(current: int, limit: int) -> int:
    """Premium request utilization rounded half up to a whole percent.

    Not clamped: usage past the quota reports more than 100.
    """
    if limit <= 0:
        return 0
    return math.floor((current / limit) * 100 + 0.5)


def usage_based_utilization(
    actual_total_cost_cents: float,
    limit_dollars: float | None,
    enabled: bool = True,
) -> float:
    """Share of the usage-based spending limit already spent.

    Args:
        actual_total_cost_cents: Spend in the active period
        limit_dollars: Spending limit in dollars
        enabled: Whether usage-based pricing is turned on

    Returns:
        Unrounded, unclamped percentage; 0 when disabled or without a limit
    """
    if not enabled or not limit_dollars or limit_dollars <= 0:
        return 0.0
    return (actual_total_cost_cents / 100) / limit_dollars * 100


def _strip_trailing_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def format_percentage(
    value: float, max_decimals: int = DEFAULT_MAX_PERCENT_DECIMALS
) -> str:
    """Render a percentage with the fewest decimals that represent it exactly.

    Integers render without a decimal point. Otherwise precisions from 1 to
    max_decimals are tried in turn and the first one that reproduces the
    value within tolerance wins. Values that need more precision fall back
    to max_decimals. Trailing zeros are always stripped.

    Args:
        value: Percentage to format
        max_decimals: Maximum number of decimals to show

    Returns:
        Formatted percentage without a percent sign
    """
    if float(value).is_integer():
        return str(int(value))

    for decimals in range(1, max_decimals + 1):
        if abs(round(value, decimals) - value) < PERCENT_EXACTNESS_TOLERANCE:
            return _strip_trailing_zeros(f"{value:.{decimals}f}")

    return _strip_trailing_zeros(f"{value:.{max_decimals}f}")


def remaining_percent(
    current: int, limit: int, max_decimals: int = DEFAULT_MAX_PERCENT_DECIMALS
) -> str:
    """Smart-formatted share of the premium quota still available.

    Clamped to 0..100, unlike premium_utilization.
    """
    if limit <= 0:
        return "0"
    remaining = min(100.0, max(0.0, 100 - (current / limit) * 100))
    return format_percentage(remaining, max_decimals)
