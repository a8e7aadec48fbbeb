"""Utility modules for ArtGate."""

from .logging import (
    clear_correlation_id,
    configure_logging,
    create_contextual_logger,
    get_correlation_id,
    get_logger,
    log_exception,
    set_correlation_id,
)
from .timeutils import history_timestamp, utc_date_key, utc_now

__all__ = [
    "configure_logging",
    "create_contextual_logger",
    "get_logger",
    "log_exception",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "history_timestamp",
    "utc_date_key",
    "utc_now",
]
