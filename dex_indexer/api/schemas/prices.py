from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LastPriceResponse(BaseModel):
    chain_id: int
    base: str = Field(..., description="Base token address (lowercase).")
    quote: str = Field(..., description="Quote token address; defaults to the chain stablecoin.")
    granularity: str
    price: str = Field(..., description="Units of quote per one base, 18 fractional digits.")
    tick_at: datetime | None = Field(None, description="Oldest bucket among the two stored prices.")


class PricePointResponse(BaseModel):
    tick_at: datetime
    value: str
    low: str
    high: str


class PriceHistoryResponse(BaseModel):
    token_id: int
    granularity: str
    series: list[PricePointResponse]
