from __future__ import annotations

from datetime import datetime
from typing import Protocol

from dex_indexer.domain.entities.price import Granularity, PriceWrite, StoredPrice


class PriceSeriesPort(Protocol):
    def load_last_prices(
        self,
        *,
        granularity: Granularity,
        token_ids: list[int],
        at: datetime,
    ) -> dict[int, StoredPrice]:
        ...

    def upsert_prices(self, *, granularity: Granularity, rows: list[PriceWrite]) -> int:
        ...
