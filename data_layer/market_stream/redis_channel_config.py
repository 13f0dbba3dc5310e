"""
Configuration for the Redis pub/sub price channel
"""

from dataclasses import dataclass

from config.settings import settings


@dataclass
class RedisChannelConfig:
    """Configuration for the Redis price channel"""

    # Redis connection
    redis_url: str = settings.redis_url

    # Channel naming
    channel: str = settings.price_channel

    # Subscriber configuration
    poll_timeout_seconds: float = 1.0  # get_message timeout, bounds how long close() takes to be seen

    # Publisher retry configuration
    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    # Connection pool
    max_connections: int = 50
    socket_timeout: int = 5
    socket_connect_timeout: int = 5


# Global configuration instance
redis_channel_config = RedisChannelConfig()
