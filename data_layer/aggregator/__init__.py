"""
Price Aggregator Package.

This package keeps per-symbol price history and running statistics,
and the worker that feeds them from the price channel.
"""

from data_layer.aggregator.models import SymbolStats, StoreSnapshot
from data_layer.aggregator.aggregation_store import AggregationStore
from data_layer.aggregator.ingestion_worker import IngestionWorker

__all__ = [
    "SymbolStats",
    "StoreSnapshot",
    "AggregationStore",
    "IngestionWorker",
]
