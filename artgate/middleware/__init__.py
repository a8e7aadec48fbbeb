"""HTTP middleware for ArtGate."""

from .correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
