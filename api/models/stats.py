"""Stats models for API requests and responses."""

from pydantic import BaseModel, Field


class FocusRequest(BaseModel):
    """Request model for display focus changes."""

    focused: bool = Field(..., description="Whether the display is visible")


class RefreshResponse(BaseModel):
    """Response model for refresh requests."""

    accepted: bool
    coalesced: bool
    message: str


class FocusResponse(BaseModel):
    """Response model for focus changes."""

    focused: bool
    phase: str
