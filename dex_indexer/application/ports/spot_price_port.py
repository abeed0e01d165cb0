from __future__ import annotations

from typing import Protocol

from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.pool import PoolSpotPrice


class SpotPricePort(Protocol):
    def get_spot_price(
        self,
        *,
        network: Network,
        base: str,
        quote: str,
        pool_idx: int,
        base_decimals: int,
        quote_decimals: int,
    ) -> PoolSpotPrice:
        ...
