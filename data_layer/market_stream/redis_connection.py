"""
Pooled Redis connections for the price channel
"""

from typing import Tuple

import redis

from data_layer.market_stream.redis_channel_config import RedisChannelConfig


def open_redis(config: RedisChannelConfig) -> Tuple[redis.ConnectionPool, redis.Redis]:
    """
    Open a pooled client for the configured Redis URL and check it answers

    Args:
        config: Channel configuration carrying the URL, pool size and timeouts

    Returns:
        (pool, client) tuple; the caller owns both and must release them

    Raises:
        redis.RedisError: if the server cannot be reached
    """
    pool = redis.ConnectionPool.from_url(
        config.redis_url,
        max_connections=config.max_connections,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
        decode_responses=False
    )
    client = redis.Redis(connection_pool=pool)
    try:
        client.ping()
    except redis.RedisError:
        pool.disconnect()
        raise
    return pool, client
