from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from dex_indexer.application.use_cases.resolve_direct_prices import DirectQuotePriceSource, parse_quote
from dex_indexer.domain.entities.network import (
    ZERO_ADDRESS,
    LegacyChainConfig,
    Network,
    NetworkFeature,
)
from dex_indexer.domain.entities.token import Token


WRBTC = "0x542fda317318ebf1d3deaf76e0b632741a7e677d"
SOV = "0xefc78fc7d48b64958315949279ba181c2114abbd"
XUSD = "0xb5999795be0ebb5bab23144aa5fd6a02d080299f"

NETWORK = Network(
    name="rootstock",
    chain_id=30,
    rpc_url="https://rpc.example",
    features=(NetworkFeature.LEGACY,),
    stablecoin_address=XUSD,
    wrapped_native_address=WRBTC,
    legacy=LegacyChainConfig(subgraph_url="https://subgraph.example"),
)


class FakeTokenQuotePort:
    def __init__(self, quotes: dict[str, str]):
        self._quotes = quotes
        self.requested: list[str] = []

    def get_token_usd_prices(self, *, network: Network, addresses: list[str]) -> dict[str, str]:
        _ = network
        self.requested = list(addresses)
        return {address: self._quotes[address] for address in addresses if address in self._quotes}


def test_maps_quotes_and_falls_back_to_wrapped_native():
    port = FakeTokenQuotePort({WRBTC: "65000.5", SOV: "0.75", XUSD: "1"})
    tokens = [
        Token(id=1, chain_id=30, address=ZERO_ADDRESS, decimals=18),
        Token(id=2, chain_id=30, address=SOV.upper().replace("0X", "0x"), decimals=18),
        Token(id=3, chain_id=30, address=XUSD, decimals=18),
    ]

    observations = DirectQuotePriceSource(token_quote_port=port).resolve(
        network=NETWORK,
        tokens=tokens,
        observed_at=datetime(2026, 3, 14, 15, 9),
    )

    by_id = {item.token_id: item.value for item in observations}
    assert by_id == {1: Decimal("65000.5"), 2: Decimal("0.75"), 3: Decimal(1)}
    assert WRBTC in port.requested


def test_skips_zero_and_unparsable_quotes():
    port = FakeTokenQuotePort({SOV: "0", XUSD: "not-a-number"})
    tokens = [
        Token(id=2, chain_id=30, address=SOV, decimals=18),
        Token(id=3, chain_id=30, address=XUSD, decimals=18),
    ]

    observations = DirectQuotePriceSource(token_quote_port=port).resolve(
        network=NETWORK,
        tokens=tokens,
        observed_at=datetime(2026, 3, 14, 15, 9),
    )

    assert observations == []


def test_parse_quote():
    assert parse_quote("1.5") == Decimal("1.5")
    assert parse_quote(None) is None
    assert parse_quote("-2") is None
    assert parse_quote("Infinity") is None


def test_native_with_unusable_quote_falls_back_to_wrapped():
    port = FakeTokenQuotePort({ZERO_ADDRESS: "0", WRBTC: "65000.5"})
    tokens = [Token(id=1, chain_id=30, address=ZERO_ADDRESS, decimals=18)]

    observations = DirectQuotePriceSource(token_quote_port=port).resolve(
        network=NETWORK,
        tokens=tokens,
        observed_at=datetime(2026, 3, 14, 15, 9),
    )

    assert [(item.token_id, item.value) for item in observations] == [(1, Decimal("65000.5"))]
