from __future__ import annotations

from dex_indexer.domain.entities.network import Network, NetworkRegistry


class ListChainsUseCase:
    def __init__(self, *, network_registry: NetworkRegistry):
        self._network_registry = network_registry

    def execute(self) -> list[Network]:
        return sorted(self._network_registry.list_chains(), key=lambda network: network.chain_id)
