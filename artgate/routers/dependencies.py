"""Request-scoped dependencies shared by the routers."""

from typing import Optional

from fastapi import Request

from ..services import GatewayServices


def get_services(request: Request) -> GatewayServices:
    """Dependency to get the service graph from application state."""
    return request.app.state.services  # type: ignore[no-any-return]


def get_base_url(request: Request, services: GatewayServices) -> str:
    """Origin used when building artifact URLs."""
    if services.config.public_base_url:
        return services.config.public_base_url
    return f"{request.url.scheme}://{request.url.netloc}"


def get_client_ip(request: Request, header: Optional[str]) -> str:
    """Caller address: the configured proxy header, the socket peer, or ``unknown``."""
    if header:
        forwarded = request.headers.get(header)
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
