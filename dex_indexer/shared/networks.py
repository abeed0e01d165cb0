from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from dex_indexer.domain.entities.network import (
    ZERO_ADDRESS,
    LegacyChainConfig,
    Network,
    NetworkFeature,
    NetworkRegistry,
    SdexChainConfig,
)
from dex_indexer.domain.exceptions import NetworkConfigError


logger = logging.getLogger(__name__)


class LegacyChainSection(BaseModel):
    subgraph_url: str = Field(..., min_length=1)


class SdexChainSection(BaseModel):
    subgraph_url: str = Field(..., min_length=1)
    query_contract: str = Field(..., min_length=1)


class NetworkSection(BaseModel):
    chain_id: int = Field(..., gt=0)
    rpc_url: str = Field(..., min_length=1)
    features: list[NetworkFeature] = Field(default_factory=list)
    stablecoin_address: str = Field(..., min_length=1)
    native_address: str = ZERO_ADDRESS
    wrapped_native_address: str | None = None
    legacy: LegacyChainSection | None = None
    sdex: SdexChainSection | None = None

    @model_validator(mode="after")
    def check_feature_sections(self) -> "NetworkSection":
        if NetworkFeature.LEGACY in self.features and self.legacy is None:
            raise ValueError("feature 'legacy' requires a 'legacy' section.")
        if NetworkFeature.SDEX in self.features and self.sdex is None:
            raise ValueError("feature 'sdex' requires an 'sdex' section.")
        return self


def _to_network(name: str, section: NetworkSection) -> Network:
    return Network(
        name=name.strip().lower(),
        chain_id=section.chain_id,
        rpc_url=section.rpc_url,
        features=tuple(dict.fromkeys(section.features)),
        stablecoin_address=section.stablecoin_address.strip().lower(),
        native_address=section.native_address.strip().lower(),
        wrapped_native_address=(
            section.wrapped_native_address.strip().lower()
            if section.wrapped_native_address
            else None
        ),
        legacy=LegacyChainConfig(subgraph_url=section.legacy.subgraph_url) if section.legacy else None,
        sdex=(
            SdexChainConfig(
                subgraph_url=section.sdex.subgraph_url,
                query_contract=section.sdex.query_contract,
            )
            if section.sdex
            else None
        ),
    )


def parse_network_registry(payload: dict) -> NetworkRegistry:
    if not isinstance(payload, dict):
        raise NetworkConfigError("Network config must be a JSON object keyed by network name.")

    networks: list[Network] = []
    seen_chain_ids: set[int] = set()
    for name, raw in payload.items():
        try:
            section = NetworkSection.model_validate(raw)
        except ValidationError as exc:
            raise NetworkConfigError(f"Invalid config for network '{name}': {exc}") from exc
        if section.chain_id in seen_chain_ids:
            raise NetworkConfigError(f"Duplicate chain_id {section.chain_id} in network '{name}'.")
        seen_chain_ids.add(section.chain_id)
        networks.append(_to_network(name, section))

    return NetworkRegistry.from_networks(networks)


def load_network_registry(path: str | Path) -> NetworkRegistry:
    config_path = Path(path)
    if not config_path.is_file():
        raise NetworkConfigError(f"Network config file not found at {config_path}")
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise NetworkConfigError(f"Cannot read network config {config_path}: {exc}") from exc

    registry = parse_network_registry(payload)
    logger.info(
        "networks: loaded path=%s chain_ids=%s",
        config_path,
        registry.chain_ids(),
    )
    return registry
