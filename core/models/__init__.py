"""Unified models package for the cursor stats system."""

from core.models.domain.stats import StatsBundle
from core.models.domain.task import TaskManagerStatus, TaskStats
from core.models.domain.usage import (
    CreditLine,
    LineResult,
    MonthlyInvoice,
    MonthlyUsage,
    ParsedLine,
    PremiumRequestUsage,
    RawBillingItem,
    SkippedLine,
    UsageBasedStatus,
    UsageLineItem,
)

__all__ = [
    "CreditLine",
    "LineResult",
    "MonthlyInvoice",
    "MonthlyUsage",
    "ParsedLine",
    "PremiumRequestUsage",
    "RawBillingItem",
    "SkippedLine",
    "StatsBundle",
    "TaskManagerStatus",
    "TaskStats",
    "UsageBasedStatus",
    "UsageLineItem",
]
