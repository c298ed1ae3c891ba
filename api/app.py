"""FastAPI application factory."""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routers import common_router, config_router, stats_router
from billing.client import CursorBillingClient
from core import get_logger, setup_logging
from core.config import Settings, load_settings
from core.cooldown import PollingCooldownController
from core.periodic_task import PeriodicTaskManager
from core.services.credentials import EnvTokenProvider
from core.services.display import LatestStatsStore
from core.services.stats_service import StatsService
from core.services.unknown_models import UnknownModelTracker

logger = get_logger(__name__)


def build_task_manager(
    settings: Settings, store: LatestStatsStore
) -> PeriodicTaskManager:
    """Wire the stats service and its polling loop from settings."""
    controller = PollingCooldownController(settings.cooldown_config())
    service = StatsService(
        source=CursorBillingClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
        ),
        token_provider=EnvTokenProvider(settings.token_env_var),
        controller=controller,
        display=store,
        unknown_models=UnknownModelTracker(),
        billing_cycle_day=settings.billing_cycle_day,
        max_percent_decimals=settings.max_percent_decimals,
    )
    return PeriodicTaskManager(
        task=service,
        controller=controller,
        countdown_interval_seconds=settings.countdown_interval_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = load_settings()
    app.state.settings = settings
    setup_logging(
        level=settings.log_level,
        enable_file_logging=True,
    )
    logger.info(f"Starting Cursor Stats API server in {settings.environment} mode")

    store = LatestStatsStore()
    app.state.stats_store = store
    manager = build_task_manager(settings, store)
    app.state.task_manager = manager

    try:
        await manager.start()
        if settings.polling_enabled:
            await manager.start_periodic()
        else:
            logger.info("Background polling disabled")
    except Exception as e:
        logger.error(f"Failed to start stats polling: {e}")

    logger.info("Cursor Stats API server initialized successfully")

    yield

    try:
        await manager.stop()
    except Exception as e:
        logger.error(f"Error stopping stats polling: {e}")

    logger.info("Cursor Stats API server shutting down")


def create_app(
    app_lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] = lifespan,
) -> FastAPI:
    """Create FastAPI app with current settings.

    Args:
        app_lifespan: Startup and shutdown handler that populates app state
    """
    settings = load_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Usage and billing stats with resilient background polling",
        version=settings.api_version,
        lifespan=app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(common_router)
    app.include_router(config_router)
    app.include_router(stats_router)
    return app


app = create_app()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> None:
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    raise HTTPException(status_code=500, detail=str(exc))
