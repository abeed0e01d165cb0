from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from dex_indexer.domain.entities.price import Granularity, StoredPrice


@dataclass(frozen=True)
class GetLastPriceInput:
    chain_id: int
    base_address: str
    quote_address: str | None = None
    granularity: Granularity = Granularity.MINUTE


@dataclass(frozen=True)
class GetLastPriceOutput:
    chain_id: int
    base_address: str
    quote_address: str
    price: Decimal
    tick_at: datetime | None


@dataclass(frozen=True)
class GetPriceHistoryInput:
    token_id: int
    granularity: Granularity
    start: datetime
    end: datetime


@dataclass(frozen=True)
class GetPriceHistoryOutput:
    token_id: int
    granularity: Granularity
    series: list[StoredPrice]
