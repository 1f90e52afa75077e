"""External insight services and their aggregation."""

from .aggregator import InsightAggregator
from .reasoning import InsightError, ReasoningClient
from .search import StackExchangeClient

__all__ = ["InsightAggregator", "InsightError", "ReasoningClient", "StackExchangeClient"]
