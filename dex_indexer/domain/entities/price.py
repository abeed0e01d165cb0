from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Granularity(str, Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


@dataclass(frozen=True)
class PriceObservation:
    token_id: int
    chain_id: int
    address: str
    value: Decimal
    observed_at: datetime


@dataclass(frozen=True)
class StoredPrice:
    token_id: int
    value: Decimal
    low: Decimal
    high: Decimal
    tick_at: datetime


@dataclass(frozen=True)
class PriceWrite:
    token_id: int
    value: Decimal
    high: Decimal
    low: Decimal
    tick_at: datetime
