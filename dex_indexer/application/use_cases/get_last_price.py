from __future__ import annotations

from decimal import Decimal, localcontext

from dex_indexer.application.dto.price_query import GetLastPriceInput, GetLastPriceOutput
from dex_indexer.application.ports.price_query_port import PriceQueryPort
from dex_indexer.application.ports.token_port import TokenPort
from dex_indexer.domain.entities.network import NetworkRegistry
from dex_indexer.domain.entities.price import StoredPrice
from dex_indexer.domain.entities.token import Token
from dex_indexer.domain.exceptions import PriceNotFoundError, PriceQueryInputError
from dex_indexer.domain.services.pair_orientation import normalize_address
from dex_indexer.domain.services.price_composer import PRICE_CONTEXT, round_price


class GetLastPriceUseCase:
    def __init__(
        self,
        *,
        network_registry: NetworkRegistry,
        token_port: TokenPort,
        price_query_port: PriceQueryPort,
    ):
        self._network_registry = network_registry
        self._token_port = token_port
        self._price_query_port = price_query_port

    def execute(self, command: GetLastPriceInput) -> GetLastPriceOutput:
        if not command.base_address or not command.base_address.strip():
            raise PriceQueryInputError("base address is required.")

        network = self._network_registry.get_by_chain_id(command.chain_id)
        stablecoin = normalize_address(network.stablecoin_address)
        base = normalize_address(command.base_address)
        quote = normalize_address(command.quote_address) if command.quote_address else stablecoin

        if base == quote:
            return GetLastPriceOutput(
                chain_id=command.chain_id,
                base_address=base,
                quote_address=quote,
                price=Decimal(1),
                tick_at=None,
            )

        base_token = self._get_token(chain_id=command.chain_id, address=base)
        quote_token = self._get_token(chain_id=command.chain_id, address=quote)
        token_ids = [token.id for token in (base_token, quote_token) if token is not None]
        latest = (
            self._price_query_port.get_latest_prices(
                granularity=command.granularity,
                token_ids=token_ids,
            )
            if token_ids
            else {}
        )

        base_row = latest.get(base_token.id) if base_token is not None else None
        quote_row = latest.get(quote_token.id) if quote_token is not None else None
        base_usd = self._usd_value(address=base, stablecoin=stablecoin, row=base_row)
        quote_usd = self._usd_value(address=quote, stablecoin=stablecoin, row=quote_row)

        with localcontext(PRICE_CONTEXT):
            price = round_price(base_usd / quote_usd)

        ticks = [row.tick_at for row in (base_row, quote_row) if row is not None]
        return GetLastPriceOutput(
            chain_id=command.chain_id,
            base_address=base,
            quote_address=quote,
            price=price,
            tick_at=min(ticks) if ticks else None,
        )

    def _get_token(self, *, chain_id: int, address: str) -> Token | None:
        return self._token_port.get_by_address(chain_id=chain_id, address=address)

    @staticmethod
    def _usd_value(*, address: str, stablecoin: str, row: StoredPrice | None) -> Decimal:
        if address == stablecoin:
            return Decimal(1)
        if row is None or row.value <= 0:
            raise PriceNotFoundError(f"No stored price for token {address}.")
        return row.value
