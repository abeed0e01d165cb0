from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock

from web3 import Web3
from web3.exceptions import Web3Exception

from dex_indexer.domain.entities.network import Network
from dex_indexer.domain.entities.pool import PoolSpotPrice
from dex_indexer.domain.exceptions import ChainSourceError
from dex_indexer.domain.services.sqrt_price_math import spot_price_from_sqrt_q64


logger = logging.getLogger(__name__)


# queryPrice(address base, address quote, uint256 poolIdx) -> uint128 sqrt price (Q64.64)
_ABI_QUERY_PRICE = [{
    "inputs": [
        {"internalType": "address", "name": "base", "type": "address"},
        {"internalType": "address", "name": "quote", "type": "address"},
        {"internalType": "uint256", "name": "poolIdx", "type": "uint256"},
    ],
    "name": "queryPrice",
    "outputs": [{"internalType": "uint128", "name": "", "type": "uint128"}],
    "stateMutability": "view",
    "type": "function",
}]


class SpotPriceQueryError(ChainSourceError):
    pass


@dataclass(frozen=True)
class SdexQueryClientSettings:
    timeout_seconds: float


class SdexQueryClient:
    def __init__(self, settings: SdexQueryClientSettings):
        self._settings = settings
        self._lock = Lock()
        self._clients: dict[str, Web3] = {}

    def get_spot_price(
        self,
        *,
        network: Network,
        base: str,
        quote: str,
        pool_idx: int,
        base_decimals: int,
        quote_decimals: int,
    ) -> PoolSpotPrice:
        if network.sdex is None or not network.sdex.query_contract:
            raise SpotPriceQueryError(f"Query contract not configured for chain_id={network.chain_id}.")

        contract = self._get_web3(network.rpc_url).eth.contract(
            address=Web3.to_checksum_address(network.sdex.query_contract),
            abi=_ABI_QUERY_PRICE,
        )
        try:
            sqrt_price_q64 = contract.functions.queryPrice(
                Web3.to_checksum_address(base),
                Web3.to_checksum_address(quote),
                int(pool_idx),
            ).call()
        except (Web3Exception, ValueError, OSError) as exc:
            raise SpotPriceQueryError(
                f"queryPrice failed chain_id={network.chain_id} base={base} quote={quote} "
                f"pool_idx={pool_idx}: {exc}"
            ) from exc

        logger.debug(
            "sdex_query_client: query_price chain_id=%s base=%s quote=%s pool_idx=%s sqrt_price=%s",
            network.chain_id,
            base,
            quote,
            pool_idx,
            sqrt_price_q64,
        )
        try:
            return spot_price_from_sqrt_q64(
                base=base,
                quote=quote,
                pool_idx=int(pool_idx),
                sqrt_price_q64=int(sqrt_price_q64),
                base_decimals=base_decimals,
                quote_decimals=quote_decimals,
            )
        except ValueError as exc:
            raise SpotPriceQueryError(
                f"Unusable spot price chain_id={network.chain_id} base={base} quote={quote} "
                f"pool_idx={pool_idx}: {exc}"
            ) from exc

    def _get_web3(self, rpc_url: str) -> Web3:
        with self._lock:
            client = self._clients.get(rpc_url)
            if client is None:
                client = Web3(
                    Web3.HTTPProvider(
                        rpc_url,
                        request_kwargs={"timeout": self._settings.timeout_seconds},
                    )
                )
                self._clients[rpc_url] = client
            return client
