"""API router for usage stats."""

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_stats_store, get_task_manager
from api.models.stats import FocusRequest, FocusResponse, RefreshResponse
from core.log import get_logger
from core.models.domain.stats import StatsBundle
from core.models.domain.task import TaskManagerStatus
from core.periodic_task import PeriodicTaskManager
from core.services.display import LatestStatsStore

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/stats", tags=["stats"])


@router.get("", response_model=StatsBundle)
async def get_stats(
    store: LatestStatsStore = Depends(get_stats_store),
) -> StatsBundle:
    """Get the most recently rendered stats."""
    if store.latest is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No stats have been collected yet",
        )
    return store.latest


@router.get("/status", response_model=TaskManagerStatus)
async def get_polling_status(
    manager: PeriodicTaskManager = Depends(get_task_manager),
) -> TaskManagerStatus:
    """Get polling loop and cooldown status."""
    return manager.get_status()


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def refresh_stats(
    manager: PeriodicTaskManager = Depends(get_task_manager),
) -> RefreshResponse:
    """Request an immediate refresh, even during cooldown.

    With the polling loop running the cycle is scheduled on it, otherwise it
    runs before the response is sent.
    """
    if manager.get_status().periodic_running:
        accepted = manager.request_refresh()
        message = "Refresh scheduled"
    else:
        accepted = await manager.execute_once()
        message = "Refresh completed"

    if accepted:
        logger.info(f"Manual refresh accepted: {message}")
        return RefreshResponse(accepted=True, coalesced=False, message=message)
    return RefreshResponse(
        accepted=True,
        coalesced=True,
        message="A refresh is already in progress",
    )


@router.post("/focus", response_model=FocusResponse)
async def set_focus(
    request: FocusRequest,
    manager: PeriodicTaskManager = Depends(get_task_manager),
) -> FocusResponse:
    """Report whether the stats display is visible."""
    manager.set_focused(request.focused)
    return FocusResponse(focused=request.focused, phase=manager.controller.phase.value)
