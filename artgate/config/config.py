"""Configuration classes for ArtGate.

This module contains all configuration classes organized by domain.
Configuration is loaded from environment variables and .env files.
"""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def str_to_bool(value: Any) -> bool:
    """Convert various string representations to boolean values.

    Args:
        value: The value to convert. Can be bool, str, int, or any other type.

    Returns:
        bool: The converted boolean value.

    Examples:
        >>> str_to_bool("true")
        True
        >>> str_to_bool("0")
        False
        >>> str_to_bool("enabled")
        True
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    if isinstance(value, int):
        return bool(value)
    return bool(value)


class ServerConfig(BaseSettings):
    """Server configuration settings."""

    # Application metadata
    app_name: str = "ArtGate"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server configuration
    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    server_port: int = Field(default=8787, alias="SERVER_PORT")
    public_base_url: Optional[str] = Field(default=None, alias="PUBLIC_BASE_URL")
    client_ip_header: Optional[str] = Field(default=None, alias="CLIENT_IP_HEADER")

    @field_validator("public_base_url")
    @classmethod
    def validate_public_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the public base URL is absolute and has no trailing slash."""
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("public_base_url must start with http:// or https://")
        return v.rstrip("/")


class CounterStoreConfig(BaseSettings):
    """Redis counter store configuration settings."""

    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    redis_token: Optional[str] = Field(default=None, alias="REDIS_TOKEN")
    redis_socket_timeout: int = 5
    redis_max_connections: int = 10

    # Key prefixes
    ip_rate_limit_prefix: str = "rl:ip"
    global_rate_limit_prefix: str = "rl:global"
    spend_key_prefix: str = "spend"

    @property
    def counter_store_configured(self) -> bool:
        """Rate limiting and budget tracking need both the URL and the token."""
        return bool(self.redis_url) and bool(self.redis_token)


class ProviderConfig(BaseSettings):
    """Image generation provider settings."""

    stability_api_key: str = Field(default="", alias="STABILITY_API_KEY")
    stability_api_url: str = Field(
        default="https://api.stability.ai", alias="STABILITY_API_URL"
    )
    stability_engine: str = Field(
        default="stable-diffusion-xl-1024-v1-0", alias="STABILITY_ENGINE"
    )
    generation_timeout: int = Field(default=60, alias="GENERATION_TIMEOUT")
    image_width: int = 1024
    image_height: int = 1024
    cfg_scale: float = 7.0
    steps: int = 30

    @field_validator("stability_api_url")
    @classmethod
    def validate_stability_api_url(cls, v: str) -> str:
        """Ensure the provider URL is properly formatted."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("stability_api_url must start with http:// or https://")
        return v.rstrip("/")


class StorageConfig(BaseSettings):
    """Artifact storage settings."""

    art_storage_dir: str = Field(default="./data", alias="ART_STORAGE_DIR")
    art_prefix: str = "art/"
    latest_key: str = "art/latest.jpg"
    image_content_type: str = "image/jpeg"
    history_cache_control: str = "public, max-age=31536000, immutable"
    latest_cache_control: str = "no-store, max-age=0"


class MonitoringConfig(BaseSettings):
    """Monitoring configuration settings."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_json", mode="before")
    @classmethod
    def validate_log_json(cls, v) -> bool:
        """Convert string boolean values to actual boolean."""
        return str_to_bool(v)


class SecurityConfig(BaseSettings):
    """Security configuration settings."""

    gateway_api_key: Optional[str] = Field(default=None, alias="GATEWAY_API_KEY")
    api_key_header: str = Field(default="X-API-Key", alias="API_KEY_HEADER")
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["Content-Type", "X-API-Key"])


class PolicyConfig(BaseSettings):
    """Admission policy limits."""

    max_request_size: int = 10_000
    min_prompt_length: int = 3
    max_prompt_length: int = 500
    max_image_bytes: int = 5 * 1024 * 1024

    ip_rate_limit: int = 10
    ip_rate_window_seconds: int = 60
    global_rate_limit: int = 100
    global_rate_window_seconds: int = 3600

    daily_spending_cap: Decimal = Field(default=Decimal("10.00"), alias="DAILY_SPENDING_CAP")
    cost_per_image: Decimal = Field(default=Decimal("0.004"), alias="COST_PER_IMAGE")
    spend_ttl_seconds: int = 86400 * 2

    blocked_words: List[str] = Field(
        default_factory=lambda: [
            "nude", "nsfw", "naked", "porn", "xxx", "sex", "explicit",
            "gore", "violence", "kill", "death", "suicide", "weapon",
        ]
    )

    @field_validator("daily_spending_cap", "cost_per_image")
    @classmethod
    def validate_non_negative_amount(cls, v: Decimal) -> Decimal:
        """Monetary amounts can't be negative."""
        if v < 0:
            raise ValueError("monetary amounts must be non-negative")
        return v


class ApplicationConfig(
    ServerConfig,
    CounterStoreConfig,
    ProviderConfig,
    StorageConfig,
    MonitoringConfig,
    SecurityConfig,
    PolicyConfig,
    BaseSettings
):
    """Main application configuration that combines all configuration domains."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )
