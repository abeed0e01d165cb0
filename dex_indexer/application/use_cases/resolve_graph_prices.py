from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

from dex_indexer.application.ports.chain_pool_port import ChainPoolPort
from dex_indexer.application.ports.spot_price_port import SpotPricePort
from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.pool import PoolRef, PoolSpotPrice
from dex_indexer.domain.entities.price import PriceObservation
from dex_indexer.domain.entities.token import Token
from dex_indexer.domain.exceptions import (
    ChainSourceError,
    InvalidComposedPriceError,
    MissingHopPriceError,
    UnreachableTokenError,
)
from dex_indexer.domain.services.pair_graph import build_pair_graph, find_shortest_path
from dex_indexer.domain.services.pair_orientation import canonical_pair, normalize_address
from dex_indexer.domain.services.price_composer import PriceBook, compose_price


logger = logging.getLogger(__name__)


def resolve_price_in_target(
    graph: dict[str, list[str]],
    price_book: PriceBook,
    token_address: str,
    target_address: str,
) -> Decimal:
    """Price one token in units of target by the fewest-hops route."""
    token = normalize_address(token_address)
    target = normalize_address(target_address)
    if token == target:
        return Decimal(1)

    path = find_shortest_path(graph, token, target)
    if path is None:
        raise UnreachableTokenError(f"No route from {token} to {target}.")
    return compose_price(path, price_book)


class GraphPriceSource:
    def __init__(
        self,
        *,
        pool_port: ChainPoolPort,
        spot_price_port: SpotPricePort,
        max_workers: int = 8,
    ):
        self._pool_port = pool_port
        self._spot_price_port = spot_price_port
        self._max_workers = max(1, max_workers)

    def resolve(
        self,
        *,
        network: Network,
        tokens: list[Token],
        observed_at: datetime,
    ) -> list[PriceObservation]:
        tokens_by_address = {normalize_address(token.address): token for token in tokens}
        pools = self._tracked_pools(network=network, tokens_by_address=tokens_by_address)
        spot_prices = self._fetch_spot_prices(
            network=network,
            pools=pools,
            tokens_by_address=tokens_by_address,
        )

        graph = build_pair_graph((pool.base, pool.quote) for pool in pools)
        price_book = PriceBook(spot_prices, pools)
        target = normalize_address(network.stablecoin_address)

        observations: list[PriceObservation] = []
        for address, token in tokens_by_address.items():
            try:
                value = resolve_price_in_target(graph, price_book, address, target)
            except (UnreachableTokenError, MissingHopPriceError, InvalidComposedPriceError) as exc:
                logger.info(
                    "graph_price_source: skip token chain_id=%s token=%s reason=%s",
                    network.chain_id,
                    address,
                    exc,
                )
                continue
            observations.append(
                PriceObservation(
                    token_id=token.id,
                    chain_id=network.chain_id,
                    address=address,
                    value=value,
                    observed_at=observed_at,
                )
            )

        logger.info(
            "graph_price_source: resolved chain_id=%s tokens=%s pools=%s priced_pools=%s observations=%s",
            network.chain_id,
            len(tokens_by_address),
            len(pools),
            len(spot_prices),
            len(observations),
        )
        return observations

    def _tracked_pools(
        self,
        *,
        network: Network,
        tokens_by_address: dict[str, Token],
    ) -> list[PoolRef]:
        pools: list[PoolRef] = []
        for pool in self._pool_port.list_pools(network=network):
            base, quote = canonical_pair(pool.base, pool.quote)
            if base not in tokens_by_address or quote not in tokens_by_address:
                continue
            pools.append(PoolRef(base=base, quote=quote, pool_idx=int(pool.pool_idx)))
        return pools

    def _fetch_spot_prices(
        self,
        *,
        network: Network,
        pools: list[PoolRef],
        tokens_by_address: dict[str, Token],
    ) -> list[PoolSpotPrice]:
        if not pools:
            return []

        def fetch(pool: PoolRef) -> PoolSpotPrice | None:
            try:
                return self._spot_price_port.get_spot_price(
                    network=network,
                    base=pool.base,
                    quote=pool.quote,
                    pool_idx=pool.pool_idx,
                    base_decimals=tokens_by_address[pool.base].decimals,
                    quote_decimals=tokens_by_address[pool.quote].decimals,
                )
            except (ChainSourceError, ValueError) as exc:
                logger.warning(
                    "graph_price_source: spot price unavailable chain_id=%s base=%s quote=%s pool_idx=%s error=%s",
                    network.chain_id,
                    pool.base,
                    pool.quote,
                    pool.pool_idx,
                    exc,
                )
                return None

        workers = min(self._max_workers, len(pools))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(fetch, pools))
        return [item for item in results if item is not None]
