"""UTC time helpers shared by the ledger, limiter and artifact key scheme."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_date_key(now: Optional[datetime] = None) -> str:
    """Calendar date in UTC, e.g. ``2024-01-15``."""
    now = now or utc_now()
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d")


def history_timestamp(now: Optional[datetime] = None) -> str:
    """Sortable, key-safe ISO-8601 timestamp.

    ``2024-01-15T10:00:00.123456Z`` becomes ``2024-01-15T10-00-00-123456Z``.
    """
    now = (now or utc_now()).astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return iso.replace(":", "-").replace(".", "-")
