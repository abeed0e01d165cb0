from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PoolRef:
    base: str
    quote: str
    pool_idx: int


@dataclass(frozen=True)
class PoolSpotPrice:
    base: str
    quote: str
    pool_idx: int
    base_to_quote: Decimal
    quote_to_base: Decimal
