"""Gateway error type and its HTTP mapping."""

from typing import Dict, Optional

from .enums import ErrorKind, ProviderErrorKind
from .generation import ErrorResponse

ERROR_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.REQUEST_TOO_LARGE: 413,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.GLOBAL_RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.DAILY_BUDGET_EXCEEDED: 429,
    ErrorKind.INVALID_JSON: 400,
    ErrorKind.INVALID_PROMPT: 400,
    ErrorKind.PROMPT_TOO_LONG: 400,
    ErrorKind.INAPPROPRIATE_PROMPT: 400,
    ErrorKind.IMAGE_TOO_LARGE: 500,
    ErrorKind.INSUFFICIENT_CREDITS: 402,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.AI_PROVIDER_RATE_LIMIT: 429,
    ErrorKind.INVALID_PROMPT_FOR_PROVIDER: 400,
    ErrorKind.GENERATION_FAILED: 500,
}

DEFAULT_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.REQUEST_TOO_LARGE: "Request body exceeds 10KB limit",
    ErrorKind.UNAUTHORIZED: "Missing or invalid API key",
    ErrorKind.RATE_LIMIT_EXCEEDED: "Too many requests from your IP. Try again in 1 minute.",
    ErrorKind.GLOBAL_RATE_LIMIT_EXCEEDED: "System is currently at capacity. Please try again later.",
    ErrorKind.DAILY_BUDGET_EXCEEDED: "Daily spending cap reached. Resets at midnight UTC.",
    ErrorKind.INVALID_JSON: "Request body must be valid JSON",
    ErrorKind.INVALID_PROMPT: "Prompt is missing or too short",
    ErrorKind.PROMPT_TOO_LONG: "Prompt is too long",
    ErrorKind.INAPPROPRIATE_PROMPT: "Prompt contains inappropriate content",
    ErrorKind.IMAGE_TOO_LARGE: "Generated image exceeds size limit",
    ErrorKind.INSUFFICIENT_CREDITS: "AI provider credits exhausted. Please contact administrator.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.AI_PROVIDER_RATE_LIMIT: "AI provider is rate limiting. Please wait a moment.",
    ErrorKind.INVALID_PROMPT_FOR_PROVIDER: "Prompt was rejected by AI provider. Try different wording.",
    ErrorKind.GENERATION_FAILED: "Image generation failed. Please try again.",
}

PROVIDER_ERROR_KINDS: Dict[ProviderErrorKind, ErrorKind] = {
    ProviderErrorKind.INSUFFICIENT_CREDITS: ErrorKind.INSUFFICIENT_CREDITS,
    ProviderErrorKind.TIMEOUT: ErrorKind.TIMEOUT,
    ProviderErrorKind.RATE_LIMITED: ErrorKind.AI_PROVIDER_RATE_LIMIT,
    ProviderErrorKind.PROMPT_REJECTED: ErrorKind.INVALID_PROMPT_FOR_PROVIDER,
    ProviderErrorKind.UNKNOWN: ErrorKind.GENERATION_FAILED,
}


class GatewayError(Exception):
    """Terminal failure of a pipeline stage.

    Carries the machine kind, a human message safe to show to callers, and
    any extra response headers (rate-limit metadata, Retry-After).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.headers = headers or {}
        super().__init__(f"{kind.value}: {self.message}")

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.kind.value, message=self.message)

    def to_dict(self) -> Dict[str, str]:
        return self.to_response().model_dump()


class ProviderError(Exception):
    """Categorized failure raised by a generation client."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        detail: str = "",
        retry_after: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.retry_after = retry_after
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


def gateway_error_from_provider(error: ProviderError) -> GatewayError:
    """Translate a provider failure into the caller-facing error."""
    kind = PROVIDER_ERROR_KINDS[error.kind]
    headers: Dict[str, str] = {}
    if kind is ErrorKind.AI_PROVIDER_RATE_LIMIT and error.retry_after is not None:
        headers["Retry-After"] = str(error.retry_after)
    return GatewayError(kind, headers=headers)
