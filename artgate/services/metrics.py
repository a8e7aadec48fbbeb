"""Prometheus metrics for ArtGate."""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest

generation_requests = Counter(
    "generation_requests_total",
    "Generation requests by outcome (success or error kind)",
    ["outcome"],
)

generation_duration = Histogram(
    "generation_duration_seconds",
    "Time spent waiting on the image generation provider",
    buckets=(1, 2.5, 5, 10, 20, 30, 45, 60, 90),
)

spend_recorded = Counter(
    "spend_recorded_micro_units_total",
    "Spend added to the daily ledger, in micro-units",
)

artifact_requests = Counter(
    "artifact_requests_total",
    "Artifact fetches by result",
    ["status"],
)


def render_metrics(registry: CollectorRegistry = REGISTRY) -> bytes:
    """Prometheus text exposition of all registered metrics."""
    return generate_latest(registry)
