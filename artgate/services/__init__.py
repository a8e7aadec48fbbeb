"""Service layer for ArtGate."""

from .budget_ledger import BudgetLedger
from .container import GatewayServices, build_services
from .content_policy import ContentPolicy
from .generation_client import GenerationClient, classify_failure_message
from .object_store import FileSystemObjectStore, ObjectStore, history_key
from .pipeline import GenerationPipeline
from .rate_limiter import FixedWindow, RateLimiter
from .redis_client import RedisClient

__all__ = [
    "BudgetLedger",
    "ContentPolicy",
    "FileSystemObjectStore",
    "FixedWindow",
    "GatewayServices",
    "GenerationClient",
    "GenerationPipeline",
    "ObjectStore",
    "RateLimiter",
    "RedisClient",
    "build_services",
    "classify_failure_message",
    "history_key",
]
