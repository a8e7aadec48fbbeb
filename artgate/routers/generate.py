"""Generation router for ArtGate."""

from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..models import ErrorKind, GatewayError, GenerationRequest
from ..services import GatewayServices
from ..utils import get_logger, log_exception
from .dependencies import get_base_url, get_client_ip, get_services

router = APIRouter(prefix="/api", tags=["generate"])
logger = get_logger(__name__)


def _declared_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _bounded_body_reader(request: Request, limit: int) -> Callable[[], Awaitable[bytes]]:
    """Read the body stream, stopping once it grows past ``limit`` bytes."""

    async def read_body() -> bytes:
        body = bytearray()
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > limit:
                break
        return bytes(body)

    return read_body


@router.post("/generate")
async def generate(
    request: Request,
    services: GatewayServices = Depends(get_services),
) -> JSONResponse:
    """Generate an image from ``{"prompt": ...}`` and store it."""
    config = services.config
    generation_request = GenerationRequest(
        read_body=_bounded_body_reader(request, config.max_request_size),
        content_length=_declared_length(request),
        client_ip=get_client_ip(request, config.client_ip_header),
        api_key=request.headers.get(config.api_key_header),
        origin=request.headers.get("origin"),
        referer=request.headers.get("referer"),
        host=request.headers.get("host") or request.url.netloc,
        base_url=get_base_url(request, services),
    )

    try:
        result = await services.pipeline.handle_generate(generation_request)
    except GatewayError:
        raise
    except Exception as e:
        # Counter store outages and other surprises fail closed.
        log_exception(logger, e, "Generation request failed unexpectedly", endpoint="/api/generate")
        raise GatewayError(ErrorKind.GENERATION_FAILED)

    return JSONResponse(result.model_dump(by_alias=True))
