from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from dex_indexer.application.ports.token_quote_port import TokenQuotePort
from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.price import PriceObservation
from dex_indexer.domain.entities.token import Token
from dex_indexer.domain.services.pair_orientation import normalize_address


logger = logging.getLogger(__name__)


def parse_quote(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


class DirectQuotePriceSource:
    def __init__(self, *, token_quote_port: TokenQuotePort):
        self._token_quote_port = token_quote_port

    def resolve(
        self,
        *,
        network: Network,
        tokens: list[Token],
        observed_at: datetime,
    ) -> list[PriceObservation]:
        if not tokens:
            return []

        native = normalize_address(network.native_address)
        wrapped = (
            normalize_address(network.wrapped_native_address)
            if network.wrapped_native_address
            else None
        )

        addresses = sorted({normalize_address(token.address) for token in tokens})
        requested = list(addresses)
        if wrapped and native in addresses and wrapped not in addresses:
            requested.append(wrapped)

        quotes = {
            normalize_address(address): raw
            for address, raw in self._token_quote_port.get_token_usd_prices(
                network=network,
                addresses=requested,
            ).items()
        }

        observations: list[PriceObservation] = []
        for token in tokens:
            address = normalize_address(token.address)
            raw = quotes.get(address)
            value = parse_quote(raw)
            if value is None and wrapped and address == native:
                raw = quotes.get(wrapped)
                value = parse_quote(raw)
            if value is None:
                logger.info(
                    "direct_price_source: skip token chain_id=%s token=%s raw=%s",
                    network.chain_id,
                    address,
                    raw,
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
            "direct_price_source: resolved chain_id=%s tokens=%s observations=%s",
            network.chain_id,
            len(tokens),
            len(observations),
        )
        return observations
