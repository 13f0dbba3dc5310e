"""
Redis Channel Subscription

Subscribes to the price channel on Redis pub/sub and yields raw message
payloads. Decoding is left to the caller.
"""

import logging
import threading
from typing import Iterator, Optional

import redis

from data_layer.market_stream.redis_channel_config import redis_channel_config, RedisChannelConfig
from data_layer.market_stream.redis_connection import open_redis

logger = logging.getLogger(__name__)


class RedisChannelSubscription:
    """
    A live subscription to one Redis pub/sub channel.

    Iterate over messages() from a single consumer thread; close() may be
    called from any thread and ends the iteration after the current poll.
    """

    def __init__(self, config: Optional[RedisChannelConfig] = None):
        """
        Initialize the subscription

        Args:
            config: Optional configuration override
        """
        self.config = config or redis_channel_config
        self.logger = logger.getChild(f"Subscription.{self.config.channel}")

        self._redis: Optional[redis.Redis] = None
        self._connection_pool: Optional[redis.ConnectionPool] = None
        self._pubsub: Optional[redis.client.PubSub] = None
        self._closed = threading.Event()

    def connect(self) -> None:
        """Connect to Redis and subscribe to the channel. Raises on failure."""
        try:
            self._connection_pool, self._redis = open_redis(self.config)

            self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
            self._pubsub.subscribe(self.config.channel)
            self.logger.info(f"Subscribed to '{self.config.channel}' at {self.config.redis_url}")

        except Exception as e:
            self.logger.error(f"Failed to subscribe to Redis channel: {e}")
            raise

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def messages(self) -> Iterator[bytes]:
        """Yield raw payloads until the subscription is closed"""
        if self._pubsub is None:
            raise RuntimeError("Subscription is not connected")

        while not self._closed.is_set():
            message = self._pubsub.get_message(timeout=self.config.poll_timeout_seconds)
            if message is None:
                continue
            if message.get("type") != "message":
                continue
            yield message["data"]

        self.logger.debug("Subscription closed, message iteration finished")

    def close(self) -> None:
        """End iteration; the consumer exits after its current message"""
        self._closed.set()

    def disconnect(self) -> None:
        """Release the pubsub connection and the pool"""
        self.close()
        if self._pubsub:
            try:
                self._pubsub.unsubscribe()
            except redis.RedisError as e:
                self.logger.debug(f"Error unsubscribing: {e}")
            self._pubsub.close()
            self._pubsub = None
        if self._redis:
            self._redis.close()
        if self._connection_pool:
            self._connection_pool.disconnect()
        self.logger.info("Subscription disconnected")

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()
