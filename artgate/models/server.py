"""Health and rate-limit models for ArtGate."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import RateLimitScope


class HealthStatus(BaseModel):
    """Health status response."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(default="ok", description="Overall health status")
    timestamp: str = Field(..., description="ISO-8601 status timestamp")
    version: str = Field(..., description="Service version")
    rate_limit: str = Field(..., alias="rateLimit", description="enabled or disabled")


class RateLimitResult(BaseModel):
    """Outcome of one fixed-window increment."""

    scope: RateLimitScope
    success: bool = Field(..., description="Whether the call fits in the window")
    limit: int = Field(..., ge=0)
    count: int = Field(..., ge=0, description="Counter value after this increment")
    remaining: int = Field(..., ge=0)
    reset: int = Field(..., description="Window end as epoch milliseconds")
