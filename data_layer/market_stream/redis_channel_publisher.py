"""
Redis Channel Publisher for Stock Prices

This module publishes stock prices to the Redis pub/sub price channel.
Every subscriber currently listening on the channel receives each message.
"""

import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime

import redis

from data_layer.market_stream.redis_channel_config import redis_channel_config, RedisChannelConfig
from data_layer.market_stream.redis_connection import open_redis
from data_layer.market_stream.models import StockPrice

logger = logging.getLogger(__name__)


class RedisChannelPublisher:
    """Publisher for stock prices on a Redis pub/sub channel"""

    def __init__(self, config: Optional[RedisChannelConfig] = None):
        """
        Initialize the Redis Channel Publisher

        Args:
            config: Optional configuration override
        """
        self.logger = logger.getChild("RedisChannelPublisher")
        self.config = config or redis_channel_config

        # Initialize Redis connection
        self._redis: Optional[redis.Redis] = None
        self._connection_pool: Optional[redis.ConnectionPool] = None
        self._connect()

        # Statistics
        self._stats = {
            'messages_published': 0,
            'failed_publishes': 0,
            'symbols': set(),
            'last_publish_time': None
        }

    def _connect(self) -> None:
        """Establish Redis connection with connection pooling"""
        try:
            self._connection_pool, self._redis = open_redis(self.config)
            self.logger.info(f"Connected to Redis at {self.config.redis_url}")

        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            raise

    def publish_price(self, price: StockPrice, retry: bool = True) -> bool:
        """
        Publish a stock price to the channel

        Args:
            price: StockPrice to publish
            retry: Whether to reconnect and retry on connection errors

        Returns:
            True if published successfully, False otherwise
        """
        if not self._redis:
            self.logger.error("Redis connection not established")
            return False

        attempts = self.config.max_retries if retry else 1
        for attempt in range(attempts):
            try:
                receivers = self._redis.publish(self.config.channel, price.to_json())

                self._stats['messages_published'] += 1
                self._stats['symbols'].add(price.symbol)
                self._stats['last_publish_time'] = datetime.now()

                self.logger.debug(f"Published {price.symbol} @ {price.price:.2f} to {receivers} subscriber(s)")
                return True

            except redis.ConnectionError as e:
                self.logger.warning(f"Connection error publishing price (attempt {attempt + 1}): {e}")
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay_seconds)
                    try:
                        self._connect()
                    except redis.ConnectionError:
                        continue
                else:
                    self._stats['failed_publishes'] += 1
                    self.logger.error(f"Failed to publish price after {attempts} attempts")
                    return False

            except redis.RedisError as e:
                self.logger.error(f"Error publishing price for {price.symbol}: {e}")
                self._stats['failed_publishes'] += 1
                return False

        return False

    def get_stats(self) -> Dict[str, Any]:
        """Get publisher statistics"""
        return {
            'messages_published': self._stats['messages_published'],
            'failed_publishes': self._stats['failed_publishes'],
            'active_symbols': sorted(self._stats['symbols']),
            'last_publish_time': self._stats['last_publish_time'].isoformat() if self._stats['last_publish_time'] else None
        }

    def close(self) -> None:
        """Close Redis connection"""
        if self._redis:
            self._redis.close()
        if self._connection_pool:
            self._connection_pool.disconnect()
        self.logger.info("Redis Channel Publisher closed")

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
