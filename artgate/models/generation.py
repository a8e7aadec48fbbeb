"""Generation request and response models for ArtGate."""

from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """Inbound generation call, reduced to what the admission pipeline reads."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    read_body: Callable[[], Awaitable[bytes]] = Field(..., description="Reads the raw request body")
    content_length: Optional[int] = Field(default=None, description="Declared Content-Length")
    client_ip: str = Field(default="unknown", description="Caller network address")
    api_key: Optional[str] = Field(default=None, description="Presented shared secret")
    origin: Optional[str] = Field(default=None, description="Origin header")
    referer: Optional[str] = Field(default=None, description="Referer header")
    host: str = Field(..., description="Host the service was addressed as")
    base_url: str = Field(..., description="Scheme and host used to build artifact URLs")


class GenerateResponse(BaseModel):
    """Successful generation result."""

    model_config = ConfigDict(populate_by_name=True)

    latest_url: str = Field(..., alias="latestUrl")
    history_url: str = Field(..., alias="historyUrl")
    prompt: str = Field(..., description="Trimmed prompt that was generated")


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""

    error: str = Field(..., description="Machine-readable error kind")
    message: str = Field(..., description="Human-readable explanation")
