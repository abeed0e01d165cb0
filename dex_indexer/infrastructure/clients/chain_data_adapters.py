from __future__ import annotations

from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.pool import PoolRef
from dex_indexer.domain.exceptions import ChainSourceError
from dex_indexer.infrastructure.clients.subgraph_client import SubgraphClient, SubgraphError


class SubgraphPoolSource:
    def __init__(self, *, client: SubgraphClient):
        self._client = client

    def list_pools(self, *, network: Network) -> list[PoolRef]:
        if network.sdex is None or not network.sdex.subgraph_url:
            raise ChainSourceError(f"Pool subgraph not configured for chain_id={network.chain_id}.")
        try:
            rows = self._client.fetch_pools(url=network.sdex.subgraph_url)
        except SubgraphError as exc:
            raise ChainSourceError(f"Pool listing failed for chain_id={network.chain_id}: {exc}") from exc
        return [PoolRef(base=row.base, quote=row.quote, pool_idx=row.pool_idx) for row in rows]


class SubgraphTokenQuoteSource:
    def __init__(self, *, client: SubgraphClient):
        self._client = client

    def get_token_usd_prices(self, *, network: Network, addresses: list[str]) -> dict[str, str]:
        if network.legacy is None or not network.legacy.subgraph_url:
            raise ChainSourceError(f"Token subgraph not configured for chain_id={network.chain_id}.")
        try:
            rows = self._client.fetch_token_prices(
                url=network.legacy.subgraph_url,
                addresses=addresses,
            )
        except SubgraphError as exc:
            raise ChainSourceError(f"Token quotes failed for chain_id={network.chain_id}: {exc}") from exc
        return {row.id: row.last_price_usd for row in rows if row.last_price_usd is not None}
