"""Data models for ArtGate.

This module contains the Pydantic models and error types used throughout
the application."""

from .enums import ErrorKind, ProviderErrorKind, RateLimitScope

from .errors import (
    ERROR_STATUS,
    GatewayError,
    ProviderError,
    gateway_error_from_provider,
)

from .generation import ErrorResponse, GenerateResponse, GenerationRequest

from .storage import HistoryItem, HistoryListing, ObjectInfo, StoredObject

from .server import HealthStatus, RateLimitResult

__all__ = [
    # Enums
    "ErrorKind",
    "ProviderErrorKind",
    "RateLimitScope",
    # Errors
    "ERROR_STATUS",
    "GatewayError",
    "ProviderError",
    "gateway_error_from_provider",
    # Generation models
    "GenerationRequest",
    "GenerateResponse",
    "ErrorResponse",
    # Storage models
    "ObjectInfo",
    "StoredObject",
    "HistoryItem",
    "HistoryListing",
    # Server models
    "HealthStatus",
    "RateLimitResult",
]
