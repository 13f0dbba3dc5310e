"""
Data models for the price aggregator.
These models define the running statistics kept per symbol.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from data_layer.market_stream.models import StockPrice


class SymbolStats(BaseModel):
    """Running statistics over every price ingested for one symbol"""
    model_config = ConfigDict(frozen=True)

    total: float = Field(..., description="Sum of all ingested prices")
    count: int = Field(..., description="Number of ingested prices")
    average: float = Field(..., description="total / count")
    latest: float = Field(..., description="Price of the most recently ingested observation")

    @model_validator(mode="after")
    def _check_count(self) -> "SymbolStats":
        # A symbol only gets stats once its first price arrives
        if self.count < 1:
            raise ValueError(f"SymbolStats requires at least one observation, got count={self.count}")
        return self

    @classmethod
    def first(cls, price: float) -> "SymbolStats":
        return cls(total=price, count=1, average=price, latest=price)

    def with_price(self, price: float) -> "SymbolStats":
        """Stats after ingesting one more price"""
        total = self.total + price
        count = self.count + 1
        return SymbolStats(total=total, count=count, average=total / count, latest=price)


class StoreSnapshot(BaseModel):
    """Stats and history copied out of the store in one critical section"""
    stats: Dict[str, SymbolStats] = Field(default_factory=dict)
    history: Dict[str, List[StockPrice]] = Field(default_factory=dict)
