"""History listing router for ArtGate."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ..models import HistoryItem, HistoryListing
from ..services import GatewayServices
from .dependencies import get_base_url, get_services

router = APIRouter(prefix="/api", tags=["history"])

MAX_LIMIT = 100


@router.get("/history", response_model=Dict[str, Any])
async def list_history(
    request: Request,
    limit: int = 20,
    services: GatewayServices = Depends(get_services),
) -> Dict[str, Any]:
    """Most recent history artifacts, newest first."""
    limit = max(1, min(limit, MAX_LIMIT))
    base_url = get_base_url(request, services)
    objects = await services.object_store.recent(
        limit,
        prefix=services.config.art_prefix,
        exclude=services.config.latest_key,
    )
    listing = HistoryListing(
        items=[
            HistoryItem(key=o.key, url=f"{base_url}/{o.key}", size=o.size, uploaded_at=o.uploaded_at)
            for o in objects
        ]
    )
    return listing.model_dump(mode="json", by_alias=True)
