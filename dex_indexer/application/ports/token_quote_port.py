from __future__ import annotations

from typing import Protocol

from dex_indexer.domain.entities.network import Network


class TokenQuotePort(Protocol):
    def get_token_usd_prices(self, *, network: Network, addresses: list[str]) -> dict[str, str]:
        ...
