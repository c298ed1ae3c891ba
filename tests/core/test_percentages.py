"""Tests for usage percentage calculations."""

import pytest

from core.percentages import (
    format_percentage,
    premium_utilization,
    remaining_percent,
    usage_based_utilization,
)


class TestPremiumUtilization:
    """Test premium request utilization."""

    def test_basic(self):
        """Test a simple ratio."""
        assert premium_utilization(150, 500) == 30

    def test_rounds_half_up(self):
        """Test .5 rounds up rather than to even."""
        assert premium_utilization(1, 8) == 13  # 12.5
        assert premium_utilization(5, 200) == 3  # 2.5

    def test_unclamped_above_limit(self):
        """Test utilization can exceed 100."""
        assert premium_utilization(750, 500) == 150

    @pytest.mark.parametrize("limit", [0, -1])
    def test_guarded_limit(self, limit):
        """Test non-positive limits give zero instead of dividing."""
        assert premium_utilization(10, limit) == 0


class TestFormatPercentage:
    """Test smart percentage formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (50.0, "50"),
            (100, "100"),
            (0.0, "0"),
            (33.3, "33.3"),
            (12.25, "12.25"),
            (66.666666, "66.667"),
            (10.1004, "10.1"),
            (99.9999, "100"),
        ],
    )
    def test_format(self, value, expected):
        """Test the shortest exact precision is chosen."""
        assert format_percentage(value) == expected

    def test_custom_max_decimals(self):
        """Test the precision limit is respected."""
        assert format_percentage(66.666666, max_decimals=1) == "66.7"
        assert format_percentage(66.666666, max_decimals=0) == "67"


class TestRemainingPercent:
    """Test remaining quota percentages."""

    def test_half_used(self):
        """Test half of the quota remaining."""
        assert remaining_percent(50, 100) == "50"

    def test_nothing_used(self):
        """Test the full quota remaining."""
        assert remaining_percent(0, 100) == "100"

    def test_zero_limit(self):
        """Test a zero limit is guarded."""
        assert remaining_percent(100, 0) == "0"

    def test_repeating_decimal(self):
        """Test a value without a short exact form uses max decimals."""
        assert remaining_percent(67, 201) == "66.667"

    def test_clamped_at_zero(self):
        """Test overuse never goes negative."""
        assert remaining_percent(750, 500) == "0"

    def test_terminating_decimal(self):
        """Test a value with a short exact form."""
        assert remaining_percent(1, 8) == "87.5"


class TestUsageBasedUtilization:
    """Test usage-based spend utilization."""

    def test_basic(self):
        """Test spend against the dollar limit."""
        assert usage_based_utilization(1385, 50) == pytest.approx(27.7)

    def test_unclamped_and_unrounded(self):
        """Test the value is neither clamped nor rounded."""
        assert usage_based_utilization(10001, 50) == pytest.approx(200.02)

    def test_disabled(self):
        """Test disabled usage-based pricing reports zero."""
        assert usage_based_utilization(1385, 50, enabled=False) == 0.0

    @pytest.mark.parametrize("limit", [None, 0])
    def test_missing_limit(self, limit):
        """Test a missing limit reports zero."""
        assert usage_based_utilization(1385, limit) == 0.0
