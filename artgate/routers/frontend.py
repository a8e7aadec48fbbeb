"""Frontend document and CORS preflight router for ArtGate."""

from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse

from ..services import GatewayServices
from .dependencies import get_services

router = APIRouter(tags=["frontend"])

INDEX_PATH = Path(__file__).resolve().parent.parent / "static" / "index.html"


@lru_cache(maxsize=1)
def load_index() -> str:
    return INDEX_PATH.read_text(encoding="utf-8")


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the bundled frontend."""
    return HTMLResponse(load_index(), media_type="text/html;charset=UTF-8")


@router.options("/{path:path}")
async def preflight(
    path: str,
    services: GatewayServices = Depends(get_services),
) -> Response:
    """Answer CORS preflight for any path."""
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ", ".join(services.config.cors_allow_methods),
            "Access-Control-Allow-Headers": ", ".join(services.config.cors_allow_headers),
            "Access-Control-Max-Age": "86400",
        },
    )
