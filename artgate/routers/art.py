"""Artifact serving router for ArtGate."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from ..services import GatewayServices, metrics
from .dependencies import get_services

router = APIRouter(tags=["art"])


@router.get("/art/{name:path}")
async def get_artifact(
    name: str,
    services: GatewayServices = Depends(get_services),
) -> Response:
    """Serve a stored artifact with its stored HTTP metadata."""
    stored = await services.object_store.get(f"art/{name}")
    if stored is None:
        metrics.artifact_requests.labels(status="not_found").inc()
        return PlainTextResponse("Image not found", status_code=404)

    metrics.artifact_requests.labels(status="ok").inc()
    return Response(
        content=stored.content,
        media_type=stored.content_type,
        headers={
            "Cache-Control": stored.cache_control,
            "ETag": stored.etag,
            "Access-Control-Allow-Origin": "*",
        },
    )
