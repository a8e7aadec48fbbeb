"""Fixed-window rate limiting for ArtGate.

Two independent windows share the Redis counter store: one per caller
address and one global. Bursts straddling a window boundary are accepted.
"""

import time
from typing import Callable, Optional

from ..config import ApplicationConfig
from ..models import RateLimitResult, RateLimitScope
from ..utils import create_contextual_logger
from .redis_client import RedisClient


class FixedWindow:
    """A single fixed-window counter family."""

    def __init__(
        self,
        store: RedisClient,
        scope: RateLimitScope,
        prefix: str,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.scope = scope
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    def window_key(self, identifier: str, now: Optional[float] = None) -> str:
        now = self.clock() if now is None else now
        window_index = int(now // self.window_seconds)
        return f"{self.prefix}:{identifier}:{window_index}"

    async def hit(self, identifier: str) -> RateLimitResult:
        """Count one request against ``identifier`` in the current window."""
        now = self.clock()
        window_index = int(now // self.window_seconds)
        reset_at = (window_index + 1) * self.window_seconds

        count = await self.store.increment_window(
            self.window_key(identifier, now), reset_at
        )
        return RateLimitResult(
            scope=self.scope,
            success=count <= self.limit,
            limit=self.limit,
            count=count,
            remaining=max(0, self.limit - count),
            reset=reset_at * 1000,
        )


class RateLimiter:
    """Per-caller and global fixed-window limiter."""

    GLOBAL_IDENTIFIER = "all"

    def __init__(
        self,
        config: ApplicationConfig,
        store: RedisClient,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.logger = create_contextual_logger(__name__, service="rate_limiter")
        self.caller_window = FixedWindow(
            store,
            RateLimitScope.CALLER,
            config.ip_rate_limit_prefix,
            config.ip_rate_limit,
            config.ip_rate_window_seconds,
            clock,
        )
        self.global_window = FixedWindow(
            store,
            RateLimitScope.GLOBAL,
            config.global_rate_limit_prefix,
            config.global_rate_limit,
            config.global_rate_window_seconds,
            clock,
        )

    async def check_caller(self, client_ip: str) -> RateLimitResult:
        result = await self.caller_window.hit(client_ip or "unknown")
        if not result.success:
            self.logger.warning(
                "Per-caller rate limit exceeded",
                client_ip=client_ip,
                count=result.count,
                limit=result.limit,
            )
        return result

    async def check_global(self) -> RateLimitResult:
        result = await self.global_window.hit(self.GLOBAL_IDENTIFIER)
        if not result.success:
            self.logger.warning(
                "Global rate limit exceeded",
                count=result.count,
                limit=result.limit,
            )
        return result
