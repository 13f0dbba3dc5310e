import logging
from typing import Callable

from api.auth_gate import AuthorizationGate
from data_layer.market_stream.models import StockPriceDecodeError, decode_stock_price
from data_layer.market_stream.redis_channel_subscription import RedisChannelSubscription

logger = logging.getLogger(__name__)


class PriceWatcher:
    """
    Prints live prices for an authorized email.

    The gate is checked once, before connecting; a denied email never
    subscribes to the channel.
    """

    def __init__(self,
                 subscription: RedisChannelSubscription,
                 gate: AuthorizationGate,
                 email: str,
                 output: Callable[[str], None] = print):
        self.subscription = subscription
        self.gate = gate
        self.email = email
        self.output = output
        self.received_count = 0
        self.decode_error_count = 0

    def run(self) -> bool:
        if not self.gate.is_authorized(self.email):
            logger.warning(f"Access denied for {self.email}")
            return False

        logger.info(f"Access granted for {self.email}, subscribing to prices")
        self.subscription.connect()
        try:
            for raw in self.subscription.messages():
                try:
                    price = decode_stock_price(raw)
                except StockPriceDecodeError as e:
                    self.decode_error_count += 1
                    logger.warning(f"Failed to parse message: {e}")
                    continue
                self.received_count += 1
                self.output(f"{price.timestamp.isoformat()}  {price.symbol:<6} {price.price:>10.2f}")
        finally:
            self.subscription.disconnect()
        return True

    def stop(self) -> None:
        self.subscription.close()
