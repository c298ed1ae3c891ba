"""FastAPI dependencies reading shared objects from app state."""

from fastapi import Request

from core.config import Settings
from core.periodic_task import PeriodicTaskManager
from core.services.display import LatestStatsStore


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_stats_store(request: Request) -> LatestStatsStore:
    """Get the latest stats store from app state."""
    store: LatestStatsStore = request.app.state.stats_store
    return store


def get_task_manager(request: Request) -> PeriodicTaskManager:
    """Get the polling task manager from app state."""
    manager: PeriodicTaskManager = request.app.state.task_manager
    return manager
