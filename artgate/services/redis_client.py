"""Redis client service for ArtGate.

The counter store behind rate limiting and the daily spend ledger. Only
three operations are needed: a windowed INCR pinned to an absolute expiry,
an INCRBY with a sliding TTL, and an integer read.
"""
import asyncio

from typing import Any, Optional
from urllib.parse import urlsplit

import redis.asyncio as redis

from ..config import ApplicationConfig
from ..utils import create_contextual_logger, log_exception


class RedisClient:
    """Async Redis client for counters, connecting lazily on first use."""

    def __init__(self, config: ApplicationConfig) -> None:
        self.config = config
        self.logger = create_contextual_logger(__name__, service="redis_client")
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._connect_lock: Optional[asyncio.Lock] = None

    @property
    def endpoint(self) -> str:
        """Host and port of the configured store, without credentials."""
        parts = urlsplit(self.config.redis_url or "")
        return f"{parts.hostname}:{parts.port or 6379}"

    async def connect(self) -> None:
        """Open the connection pool and verify it with PING.

        Concurrent callers share one attempt. A pool whose PING fails is
        closed before the error propagates, and any previous pool is closed
        before it is replaced.
        """
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()

        async with self._connect_lock:
            if self._client is not None and self._connected:
                return
            await self._close_client()

            client = redis.Redis.from_url(
                self.config.redis_url,
                password=self.config.redis_token,
                socket_timeout=self.config.redis_socket_timeout,
                max_connections=self.config.redis_max_connections,
                decode_responses=True,
            )
            try:
                await client.ping()
            except Exception as e:
                await self._close_quietly(client)
                log_exception(
                    self.logger,
                    e,
                    "Counter store connection failed",
                    serviceName="RedisClient",
                    operationName="connect",
                    endpoint=self.endpoint,
                )
                raise

            self._client = client
            self._connected = True

        self.logger.info(
            "Counter store connected",
            serviceName="RedisClient",
            operationName="connect",
            endpoint=self.endpoint,
        )

    async def _close_quietly(self, client: redis.Redis) -> None:
        try:
            await client.aclose()
        except Exception as e:
            self.logger.warning("Failed to close counter store pool", error=str(e))

    async def _close_client(self) -> None:
        client, self._client = self._client, None
        self._connected = False
        if client is not None:
            await self._close_quietly(client)

    async def disconnect(self) -> None:
        if self._client:
            await self._close_client()
            self.logger.info("Counter store disconnected", endpoint=self.endpoint)

    async def is_connected(self) -> bool:
        """PING the store; a failed ping marks the client disconnected."""
        if not self._client or not self._connected:
            return False
        try:
            await self._client.ping()
        except Exception:
            self._connected = False
            return False
        return True

    async def _ensure_connected(self) -> redis.Redis:
        if not self._client or not self._connected:
            await self.connect()
        assert self._client is not None
        return self._client

    async def _transaction(self, operation: str, key: str, *commands: Any) -> int:
        """Run ``(method, *args)`` commands in MULTI/EXEC and return the first reply."""
        client = await self._ensure_connected()
        try:
            async with client.pipeline(transaction=True) as pipe:
                for method, *args in commands:
                    getattr(pipe, method)(*args)
                replies = await pipe.execute()
        except Exception as e:
            self.logger.error("Counter store write failed", operation=operation, key=key, error=str(e))
            raise
        return int(replies[0])

    async def increment_window(self, key: str, expire_at: int) -> int:
        """Atomically increment a window counter and pin its expiry.

        Args:
            key: Counter key, unique per window.
            expire_at: Unix timestamp (seconds) at which the window ends.

        Returns:
            The counter value after the increment.
        """
        return await self._transaction(
            "increment_window", key, ("incr", key), ("expireat", key, expire_at)
        )

    async def increment_by(self, key: str, amount: int, ttl: int) -> int:
        """Atomically add ``amount`` to an integer counter and refresh its TTL."""
        return await self._transaction(
            "increment_by", key, ("incrby", key, amount), ("expire", key, ttl)
        )

    async def get_int(self, key: str) -> int:
        """Read an integer counter; a missing key reads as zero."""
        client = await self._ensure_connected()
        try:
            value = await client.get(key)
        except Exception as e:
            self.logger.error("Counter store read failed", key=key, error=str(e))
            raise
        return int(value) if value else 0

