from __future__ import annotations

from datetime import datetime
from typing import Protocol

from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.price import PriceObservation
from dex_indexer.domain.entities.token import Token


class ChainPriceSource(Protocol):
    def resolve(
        self,
        *,
        network: Network,
        tokens: list[Token],
        observed_at: datetime,
    ) -> list[PriceObservation]:
        ...
