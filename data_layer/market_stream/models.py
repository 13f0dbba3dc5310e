"""
Data models and wire codec for the stock price stream
"""

import json
from datetime import datetime
from typing import Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class StockPriceDecodeError(ValueError):
    """Raised when a stream message is not a well-formed stock price"""


class StockPrice(BaseModel):
    """A single price observation for one symbol"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    symbol: str = Field(..., min_length=1, strict=True, description="Ticker symbol (e.g., 'AAPL')")
    price: float = Field(..., strict=True, allow_inf_nan=False, description="Observed price")
    timestamp: datetime = Field(..., description="Observation time, ISO-8601 on the wire")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        # Publishers may send nanosecond precision and a 'Z' suffix
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        return datetime.fromisoformat(value)

    def to_wire(self) -> Dict[str, Any]:
        """Wire representation shared with publishers and consumers"""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_wire()).encode("utf-8")


def decode_stock_price(raw: Union[bytes, str]) -> StockPrice:
    """
    Decode a raw stream payload into a StockPrice

    Args:
        raw: JSON payload as received from the channel

    Returns:
        StockPrice object

    Raises:
        StockPriceDecodeError: if the payload is not a well-formed stock price
    """
    try:
        return StockPrice.model_validate_json(raw)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "payload" for err in e.errors())
        raise StockPriceDecodeError(f"Invalid stock price ({fields}): {e.error_count()} error(s)") from e
    except RecursionError as e:
        raise StockPriceDecodeError("Payload nested too deeply") from e
