"""API models package."""

from .config import PollingConfigResponse
from .stats import FocusRequest, FocusResponse, RefreshResponse

__all__ = [
    "FocusRequest",
    "FocusResponse",
    "PollingConfigResponse",
    "RefreshResponse",
]
