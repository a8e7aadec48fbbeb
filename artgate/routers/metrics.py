"""Metrics router for ArtGate."""

from fastapi import APIRouter, Response

from ..services.metrics import render_metrics
from ..utils import get_logger

router = APIRouter(tags=["metrics"])
logger = get_logger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@router.get("/metrics", response_class=Response)
async def prometheus_metrics() -> Response:
    """Get Prometheus metrics in text format."""
    try:
        return Response(content=render_metrics(), media_type=CONTENT_TYPE)
    except Exception as e:
        logger.error(
            "Failed to retrieve Prometheus metrics",
            error=str(e),
            endpoint="/metrics",
        )
        return Response(
            content=f"# ERROR: Failed to retrieve metrics - {e}\n",
            media_type=CONTENT_TYPE,
            status_code=503,
        )
