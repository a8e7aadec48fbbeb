"""Main application entry point for ArtGate."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ApplicationConfig, load_config
from .middleware import CorrelationMiddleware
from .models import GatewayError
from .routers import (
    art_router,
    frontend_router,
    generate_router,
    health_router,
    history_router,
    metrics_router,
)
from .services import GatewayServices, build_services
from .utils import configure_logging, get_logger


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render a pipeline failure as ``{error, message}``."""
    body = exc.to_response().model_dump()
    return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Unknown routes and methods are plain-text 404s."""
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not found", status_code=404)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)


def create_app(
    config: Optional[ApplicationConfig] = None,
    services: Optional[GatewayServices] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Configuration to use; loaded from the environment at startup
            when omitted.
        services: Prebuilt service graph. When given, startup does not build
            or connect anything and ``app.state.services`` is set immediately.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build services at startup and drain them on shutdown."""
        app_config = config or load_config()
        configure_logging(app_config.log_level, json_output=app_config.log_json)
        logger = get_logger(__name__)

        gateway = services or build_services(app_config)
        app.state.services = gateway
        try:
            logger.info("Starting services...")
            await gateway.start()
            logger.info(
                "All services are running.",
                rate_limit="enabled" if gateway.rate_limiting_enabled else "disabled",
            )
            yield
        finally:
            logger.info("Shutting down services...")
            await gateway.stop()
            logger.info("All services stopped successfully.")

    app = FastAPI(
        title="ArtGate",
        description="Prompt-to-image gateway",
        version=config.app_version if config else "1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(CorrelationMiddleware)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(generate_router)
    app.include_router(history_router)
    app.include_router(art_router)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(frontend_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    config = load_config()
    uvicorn.run(create_app(config), host=config.server_host, port=config.server_port)


if __name__ == "__main__":
    run()
