import logging
import random
import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from data_layer.market_stream.models import StockPrice
from data_layer.market_stream.redis_channel_publisher import RedisChannelPublisher

logger = logging.getLogger(__name__)


class PriceSimulator:
    """Publishes uniformly random prices for a fixed set of symbols"""

    def __init__(self,
                 publisher: RedisChannelPublisher,
                 symbols: List[str],
                 interval_seconds: float = 2.0,
                 price_range: Tuple[float, float] = (100.0, 500.0),
                 rng: Optional[random.Random] = None):
        self.publisher = publisher
        self.symbols = list(symbols)
        self.interval_seconds = interval_seconds
        self.price_range = price_range
        self._rng = rng or random.Random()
        self._stop_event = threading.Event()
        self.rounds_completed = 0

    def generate_price(self, symbol: str) -> StockPrice:
        low, high = self.price_range
        return StockPrice(
            symbol=symbol,
            price=self._rng.uniform(low, high),
            timestamp=datetime.now(timezone.utc)
        )

    def publish_round(self) -> int:
        published = 0
        for symbol in self.symbols:
            price = self.generate_price(symbol)
            if self.publisher.publish_price(price):
                published += 1
                logger.info(f"Published: {price.symbol} @ {price.price:.2f}")
            else:
                logger.warning(f"Failed to publish price for {symbol}")
        self.rounds_completed += 1
        return published

    def run(self, max_rounds: Optional[int] = None) -> None:
        logger.info(f"Publishing {len(self.symbols)} symbols every {self.interval_seconds}s")
        while not self._stop_event.is_set():
            self.publish_round()
            if max_rounds is not None and self.rounds_completed >= max_rounds:
                break
            self._stop_event.wait(self.interval_seconds)
        logger.info(f"Price simulator stopped after {self.rounds_completed} rounds")

    def stop(self) -> None:
        self._stop_event.set()
