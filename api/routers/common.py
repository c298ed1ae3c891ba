"""Common API endpoints router."""

import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from core.config import load_settings

router = APIRouter(tags=["common"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    current_settings = load_settings()
    return HealthResponse(
        status="healthy",
        version=current_settings.api_version,
        timestamp=datetime.datetime.now().isoformat(),
    )
