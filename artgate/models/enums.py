"""Enumeration types for ArtGate models."""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error kinds returned in the ``error`` field."""

    REQUEST_TOO_LARGE = "request_too_large"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    GLOBAL_RATE_LIMIT_EXCEEDED = "global_rate_limit_exceeded"
    DAILY_BUDGET_EXCEEDED = "daily_budget_exceeded"
    INVALID_JSON = "invalid_json"
    INVALID_PROMPT = "invalid_prompt"
    PROMPT_TOO_LONG = "prompt_too_long"
    INAPPROPRIATE_PROMPT = "inappropriate_prompt"
    IMAGE_TOO_LARGE = "image_too_large"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    TIMEOUT = "timeout"
    AI_PROVIDER_RATE_LIMIT = "ai_provider_rate_limit"
    INVALID_PROMPT_FOR_PROVIDER = "invalid_prompt_for_provider"
    GENERATION_FAILED = "generation_failed"


class ProviderErrorKind(str, Enum):
    """Failure categories reported by the generation provider adapter."""

    INSUFFICIENT_CREDITS = "insufficient_credits"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    PROMPT_REJECTED = "prompt_rejected"
    UNKNOWN = "unknown"


class RateLimitScope(str, Enum):
    """Scopes of the fixed-window rate limiter."""

    CALLER = "caller"
    GLOBAL = "global"
