"""Service wiring for ArtGate.

Everything a request handler needs is built once from the immutable
configuration and hung off ``app.state.services``.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import ApplicationConfig
from ..utils import create_contextual_logger
from .budget_ledger import BudgetLedger
from .generation_client import GenerationClient
from .object_store import FileSystemObjectStore, ObjectStore
from .pipeline import GenerationPipeline, ImageGenerator
from .rate_limiter import RateLimiter
from .redis_client import RedisClient

logger = create_contextual_logger(__name__, service="container")


@dataclass(frozen=True)
class GatewayServices:
    config: ApplicationConfig
    pipeline: GenerationPipeline
    object_store: ObjectStore
    redis_client: Optional[RedisClient] = None

    @property
    def rate_limiting_enabled(self) -> bool:
        return self.pipeline.rate_limiting_enabled

    async def start(self) -> None:
        # An unreachable store must not keep the gateway down; admission
        # reconnects per request and fails closed until it succeeds.
        if self.redis_client is not None:
            try:
                await self.redis_client.connect()
            except Exception:
                logger.warning("Counter store unreachable at startup, will retry on demand")

    async def stop(self) -> None:
        await self.pipeline.wait_for_pending()
        if self.redis_client is not None:
            await self.redis_client.disconnect()


def build_services(
    config: ApplicationConfig,
    generator: Optional[ImageGenerator] = None,
    object_store: Optional[ObjectStore] = None,
    redis_client: Optional[RedisClient] = None,
) -> GatewayServices:
    """Build the service graph; collaborators can be swapped in for tests."""
    store = object_store or FileSystemObjectStore.from_config(config)
    rate_limiter: Optional[RateLimiter] = None
    budget_ledger: Optional[BudgetLedger] = None

    if redis_client is None and config.counter_store_configured:
        redis_client = RedisClient(config)

    if redis_client is not None:
        rate_limiter = RateLimiter(config, redis_client)
        budget_ledger = BudgetLedger(config, redis_client)
        logger.info(
            "Rate limiting and daily budget enabled",
            ip_limit=config.ip_rate_limit,
            global_limit=config.global_rate_limit,
            daily_cap=str(config.daily_spending_cap),
        )
    else:
        logger.warning(
            "Counter store not configured: rate limiting and daily budget disabled",
        )

    pipeline = GenerationPipeline(
        config,
        generator or GenerationClient(config),
        store,
        rate_limiter=rate_limiter,
        budget_ledger=budget_ledger,
    )
    return GatewayServices(
        config=config,
        pipeline=pipeline,
        object_store=store,
        redis_client=redis_client,
    )
