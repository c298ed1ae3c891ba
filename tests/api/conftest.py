"""Fixtures for API tests."""

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.app import create_app
from core.config import Settings
from core.cooldown import PollingCooldownController
from core.periodic_task import PeriodicTaskManager
from core.services import LatestStatsStore, StaticTokenProvider, StatsService
from core.types import Environment


@pytest.fixture
def api_settings() -> Settings:
    """Settings for API tests."""
    return Settings(environment=Environment.TESTING, error_threshold=2)


@pytest.fixture
def stats_store() -> LatestStatsStore:
    return LatestStatsStore()


@pytest.fixture
def task_manager(api_settings, stats_store, fake_source, june_15):
    """Task manager polling the fake billing source."""
    controller = PollingCooldownController(api_settings.cooldown_config())
    service = StatsService(
        source=fake_source,
        token_provider=StaticTokenProvider("token-1"),
        controller=controller,
        display=stats_store,
        today=june_15,
    )
    return PeriodicTaskManager(task=service, controller=controller)


@pytest.fixture
def client(api_settings, stats_store, task_manager) -> Generator[TestClient, None, None]:
    """Create test client whose app state holds the fake polling stack."""

    @asynccontextmanager
    async def test_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.settings = api_settings
        app.state.stats_store = stats_store
        app.state.task_manager = task_manager
        await task_manager.start()
        yield
        await task_manager.stop()

    with TestClient(create_app(app_lifespan=test_lifespan)) as test_client:
        yield test_client
