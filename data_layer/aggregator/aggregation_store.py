"""
Aggregation store for ingested stock prices.

This module keeps, per symbol, the full price history and the running
statistics derived from it. Both mappings live behind one lock so that a
reader never sees a history entry without its stats update, or the reverse.
"""

import logging
import threading
from typing import Dict, List, Optional, Any

from data_layer.aggregator.models import SymbolStats, StoreSnapshot
from data_layer.market_stream.models import StockPrice

logger = logging.getLogger(__name__)


class AggregationStore:
    """
    Concurrency-safe owner of per-symbol history and statistics.

    There is one writer (the ingestion worker) and any number of readers.
    Every read copies out of the store: StockPrice and SymbolStats values are
    immutable, and the dicts and lists handed back are fresh containers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._history: Dict[str, List[StockPrice]] = {}
        self._stats: Dict[str, SymbolStats] = {}

    def apply(self, price: StockPrice) -> SymbolStats:
        """
        Append a price to its symbol's history and update the running stats.

        Args:
            price: A decoded stock price

        Returns:
            The symbol's stats after this update
        """
        with self._lock:
            history = self._history.get(price.symbol)
            if history is None:
                history = self._history[price.symbol] = []
                stats = SymbolStats.first(price.price)
            else:
                stats = self._stats[price.symbol].with_price(price.price)
            history.append(price)
            self._stats[price.symbol] = stats

        logger.debug(f"Applied {price.symbol} @ {price.price}: count={stats.count}, average={stats.average:.4f}")
        return stats

    def get_all_stats(self) -> Dict[str, SymbolStats]:
        with self._lock:
            return dict(self._stats)

    def get_all_history(self) -> Dict[str, List[StockPrice]]:
        with self._lock:
            return {symbol: list(prices) for symbol, prices in self._history.items()}

    def get_stats(self, symbol: str) -> Optional[SymbolStats]:
        """Stats for one symbol, or None if no price was ever ingested for it"""
        with self._lock:
            return self._stats.get(symbol)

    def get_history(self, symbol: str) -> Optional[List[StockPrice]]:
        """History for one symbol, or None if no price was ever ingested for it"""
        with self._lock:
            prices = self._history.get(symbol)
            return list(prices) if prices is not None else None

    def snapshot(self) -> StoreSnapshot:
        """Stats and history from the same point in the ingestion order"""
        with self._lock:
            stats = dict(self._stats)
            history = {symbol: list(prices) for symbol, prices in self._history.items()}
        return StoreSnapshot(stats=stats, history=history)

    def symbols(self) -> List[str]:
        with self._lock:
            return sorted(self._stats)

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "symbol_count": len(self._stats),
                "observation_count": sum(stats.count for stats in self._stats.values()),
            }
