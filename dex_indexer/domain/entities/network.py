from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from dex_indexer.domain.exceptions import NetworkNotFoundError


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class NetworkFeature(str, Enum):
    LEGACY = "legacy"
    SDEX = "sdex"


@dataclass(frozen=True)
class LegacyChainConfig:
    subgraph_url: str


@dataclass(frozen=True)
class SdexChainConfig:
    subgraph_url: str
    query_contract: str


@dataclass(frozen=True)
class Network:
    name: str
    chain_id: int
    rpc_url: str
    features: tuple[NetworkFeature, ...]
    stablecoin_address: str
    native_address: str = ZERO_ADDRESS
    wrapped_native_address: str | None = None
    legacy: LegacyChainConfig | None = None
    sdex: SdexChainConfig | None = None

    def has_feature(self, feature: NetworkFeature) -> bool:
        return feature in self.features


@dataclass(frozen=True)
class NetworkRegistry:
    """Chains known to this process, built once at startup.

    Lookups are by chain id or by network name. The registry is immutable and is
    handed to every component that needs chain data, so tests can build their own.
    """

    networks: tuple[Network, ...] = field(default_factory=tuple)

    @classmethod
    def from_networks(cls, networks: Iterable[Network]) -> "NetworkRegistry":
        return cls(networks=tuple(networks))

    def list_chains(self) -> list[Network]:
        return list(self.networks)

    def chain_ids(self) -> list[int]:
        return [network.chain_id for network in self.networks]

    def get_by_chain_id(self, chain_id: int) -> Network:
        for network in self.networks:
            if network.chain_id == chain_id:
                return network
        raise NetworkNotFoundError(f"Unknown chain_id: {chain_id}")

    def get_by_name(self, name: str) -> Network:
        key = name.strip().lower()
        for network in self.networks:
            if network.name == key:
                return network
        raise NetworkNotFoundError(f"Unknown network: {name}")
