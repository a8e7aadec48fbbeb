"""API routers for ArtGate."""

from .art import router as art_router
from .frontend import router as frontend_router
from .generate import router as generate_router
from .health import router as health_router
from .history import router as history_router
from .metrics import router as metrics_router

__all__ = [
    "art_router",
    "frontend_router",
    "generate_router",
    "health_router",
    "history_router",
    "metrics_router",
]
