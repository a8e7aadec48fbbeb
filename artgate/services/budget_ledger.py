"""Daily spend ledger for ArtGate.

Spend is kept per UTC calendar date as an integer count of micro-units so
that additions are exact. Entries expire on their own two days later; there
is no explicit reset. The cap is soft: concurrent requests may all pass the
check before any of them records its spend.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..config import ApplicationConfig
from ..utils import create_contextual_logger, utc_date_key, utc_now
from .redis_client import RedisClient

MICRO_UNITS = Decimal(1_000_000)


def to_micro_units(amount: Decimal) -> int:
    return int((Decimal(amount) * MICRO_UNITS).to_integral_value())


def from_micro_units(value: int) -> Decimal:
    return Decimal(value) / MICRO_UNITS


class BudgetLedger:
    """Shared daily spending cap backed by the counter store."""

    def __init__(
        self,
        config: ApplicationConfig,
        store: RedisClient,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.store = store
        self.clock = clock
        self.logger = create_contextual_logger(__name__, service="budget_ledger")
        self.cap_micro = to_micro_units(config.daily_spending_cap)
        self.cost_micro = to_micro_units(config.cost_per_image)

    def ledger_key(self, now: Optional[datetime] = None) -> str:
        return f"{self.config.spend_key_prefix}:{utc_date_key(now or self.clock())}"

    async def spent_today(self) -> Decimal:
        """Today's accumulated spend in currency units."""
        return from_micro_units(await self.store.get_int(self.ledger_key()))

    async def is_exhausted(self) -> bool:
        """Whether today's spend has reached the cap."""
        spent = await self.store.get_int(self.ledger_key())
        exhausted = spent >= self.cap_micro
        if exhausted:
            self.logger.warning(
                "Daily spending cap reached",
                spent=str(from_micro_units(spent)),
                cap=str(self.config.daily_spending_cap),
            )
        return exhausted

    async def record_generation(self) -> Decimal:
        """Add one generation's cost to today's entry and return the new total."""
        key = self.ledger_key()
        total = await self.store.increment_by(key, self.cost_micro, self.config.spend_ttl_seconds)
        self.logger.debug(
            "Recorded generation spend",
            key=key,
            total=str(from_micro_units(total)),
        )
        return from_micro_units(total)
