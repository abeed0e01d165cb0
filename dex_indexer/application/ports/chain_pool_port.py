from __future__ import annotations

from typing import Protocol

from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.pool import PoolRef


class ChainPoolPort(Protocol):
    def list_pools(self, *, network: Network) -> list[PoolRef]:
        ...
