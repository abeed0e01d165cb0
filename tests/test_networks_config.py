from __future__ import annotations

import json
from pathlib import Path

import pytest

from dex_indexer.domain.entities.network import NetworkFeature
from dex_indexer.domain.exceptions import NetworkConfigError, NetworkNotFoundError
from dex_indexer.shared.networks import load_network_registry, parse_network_registry


def _payload() -> dict:
    return {
        "Rootstock": {
            "chain_id": 30,
            "rpc_url": "https://rpc.rsk.example",
            "features": ["legacy"],
            "stablecoin_address": "0xABC",
            "wrapped_native_address": "0xDEF",
            "legacy": {"subgraph_url": "https://legacy.example"},
        },
        "bob": {
            "chain_id": 60808,
            "rpc_url": "https://rpc.bob.example",
            "features": ["sdex"],
            "stablecoin_address": "0x123",
            "sdex": {"subgraph_url": "https://sdex.example", "query_contract": "0x456"},
        },
    }


def test_parse_network_registry_builds_lookup_by_chain_and_name():
    registry = parse_network_registry(_payload())

    rootstock = registry.get_by_chain_id(30)
    assert rootstock.name == "rootstock"
    assert rootstock.stablecoin_address == "0xabc"
    assert rootstock.wrapped_native_address == "0xdef"
    assert rootstock.has_feature(NetworkFeature.LEGACY)
    assert not rootstock.has_feature(NetworkFeature.SDEX)
    assert registry.get_by_name("BOB").chain_id == 60808
    assert registry.chain_ids() == [30, 60808]

    with pytest.raises(NetworkNotFoundError):
        registry.get_by_chain_id(1)


def test_feature_without_section_is_rejected():
    payload = _payload()
    del payload["bob"]["sdex"]

    with pytest.raises(NetworkConfigError, match="bob"):
        parse_network_registry(payload)


def test_duplicate_chain_id_is_rejected():
    payload = _payload()
    payload["bob"]["chain_id"] = 30

    with pytest.raises(NetworkConfigError, match="Duplicate chain_id"):
        parse_network_registry(payload)


def test_load_network_registry_reads_file(tmp_path: Path):
    path = tmp_path / "networks.json"
    path.write_text(json.dumps(_payload()), encoding="utf-8")

    assert load_network_registry(path).chain_ids() == [30, 60808]


def test_load_network_registry_missing_file(tmp_path: Path):
    with pytest.raises(NetworkConfigError):
        load_network_registry(tmp_path / "missing.json")


def test_bundled_network_config_is_valid():
    path = Path(__file__).resolve().parents[1] / "config" / "networks.json"

    registry = load_network_registry(path)

    assert registry.list_chains()
