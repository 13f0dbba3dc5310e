"""
Market stream package for the Redis pub/sub price channel
"""

from data_layer.market_stream.models import StockPrice, StockPriceDecodeError, decode_stock_price
from data_layer.market_stream.redis_channel_config import RedisChannelConfig, redis_channel_config
from data_layer.market_stream.redis_channel_subscription import RedisChannelSubscription
from data_layer.market_stream.redis_channel_publisher import RedisChannelPublisher
from data_layer.market_stream.price_simulator import PriceSimulator
from data_layer.market_stream.price_watcher import PriceWatcher
