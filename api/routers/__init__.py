"""API routers package."""

from .common import router as common_router
from .config import router as config_router
from .stats import router as stats_router

__all__ = [
    "common_router",
    "config_router",
    "stats_router",
]
