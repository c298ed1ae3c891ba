"""Core functionality for the cursor stats system."""

from .config import Settings, settings
from .cooldown import CooldownConfig, CooldownState, PollingCooldownController
from .log import (
    get_logger,
    setup_logging,
    setup_production_logging,
    setup_test_logging,
)
from .types import Environment, PollingPhase, StatsState

__all__ = [
    "CooldownConfig",
    "CooldownState",
    "Environment",
    "PollingCooldownController",
    "PollingPhase",
    "Settings",
    "StatsState",
    "settings",
    "get_logger",
    "setup_logging",
    "setup_production_logging",
    "setup_test_logging",
]
