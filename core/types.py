"""Common type definitions for the cursor stats system."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class PollingPhase(str, Enum):
    """Phase of the polling cooldown state machine."""

    ACTIVE = "active"
    COOLDOWN = "cooldown"


class StatsState(str, Enum):
    """Kind of result bundle handed to the display."""

    OK = "ok"
    ERROR = "error"
    SUSPENDED = "suspended"
    NO_TOKEN = "no_token"
