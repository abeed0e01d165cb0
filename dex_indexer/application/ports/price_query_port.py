from __future__ import annotations

from datetime import datetime
from typing import Protocol

from dex_indexer.domain.entities.price import Granularity, StoredPrice


class PriceQueryPort(Protocol):
    def get_latest_prices(
        self,
        *,
        granularity: Granularity,
        token_ids: list[int],
    ) -> dict[int, StoredPrice]:
        ...

    def get_series(
        self,
        *,
        granularity: Granularity,
        token_id: int,
        start: datetime,
        end: datetime,
    ) -> list[StoredPrice]:
        ...
