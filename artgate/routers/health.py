"""Health check router for ArtGate."""

from datetime import timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..models import HealthStatus
from ..services import GatewayServices
from ..utils import utc_now
from .dependencies import get_services

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
async def health_check(
    services: GatewayServices = Depends(get_services),
) -> Dict[str, Any]:
    """Get application health status."""
    timestamp = utc_now().astimezone(timezone.utc).isoformat(timespec="milliseconds")
    status = HealthStatus(
        status="ok",
        timestamp=timestamp.replace("+00:00", "Z"),
        version=services.config.app_version,
        rate_limit="enabled" if services.rate_limiting_enabled else "disabled",
    )
    return status.model_dump(by_alias=True)
