"""Request correlation and access logging."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__, serviceName="CorrelationMiddleware")

MAX_INBOUND_ID_LENGTH = 128


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation ID and logs one line per outcome.

    An inbound ``X-Correlation-ID`` is reused when it is short enough to be
    an ID; anything else gets a fresh UUID. The ID is echoed on the response.
    """

    def __init__(self, app, correlation_header: str = "X-Correlation-ID"):
        super().__init__(app)
        self.correlation_header = correlation_header

    def _inbound_id(self, request: Request):
        value = request.headers.get(self.correlation_header, "").strip()
        if value and len(value) <= MAX_INBOUND_ID_LENGTH:
            return value
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = set_correlation_id(self._inbound_id(request))
        started = time.monotonic()
        try:
            response = await call_next(request)
            response.headers[self.correlation_header] = correlation_id
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            return response
        except Exception:
            logger.exception(
                "HTTP request crashed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            raise
        finally:
            clear_correlation_id()
