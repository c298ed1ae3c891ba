"""Core services package."""

from .credentials import EnvTokenProvider, StaticTokenProvider, TokenProvider
from .display import DisplaySink, LatestStatsStore
from .stats_service import StatsService
from .unknown_models import UnknownModelTracker

__all__ = [
    "DisplaySink",
    "EnvTokenProvider",
    "LatestStatsStore",
    "StaticTokenProvider",
    "StatsService",
    "TokenProvider",
    "UnknownModelTracker",
]
