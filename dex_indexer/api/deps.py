from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from dex_indexer.application.use_cases.get_last_price import GetLastPriceUseCase
from dex_indexer.application.use_cases.get_price_history import GetPriceHistoryUseCase
from dex_indexer.application.use_cases.list_chains import ListChainsUseCase
from dex_indexer.application.use_cases.refresh_tokens import RefreshTokensUseCase
from dex_indexer.application.use_cases.resolve_direct_prices import DirectQuotePriceSource
from dex_indexer.application.use_cases.resolve_graph_prices import GraphPriceSource
from dex_indexer.application.use_cases.run_price_cycle import RunPriceCycleUseCase
from dex_indexer.application.use_cases.store_price_series import StorePriceSeriesUseCase
from dex_indexer.domain.entities.network import NetworkFeature, NetworkRegistry
from dex_indexer.domain.exceptions import NetworkConfigError
from dex_indexer.infrastructure.clients.chain_data_adapters import (
    SubgraphPoolSource,
    SubgraphTokenQuoteSource,
)
from dex_indexer.infrastructure.clients.sdex_query_client import (
    SdexQueryClient,
    SdexQueryClientSettings,
)
from dex_indexer.infrastructure.clients.subgraph_client import (
    SubgraphClient,
    SubgraphClientSettings,
)
from dex_indexer.infrastructure.clients.token_list_client import (
    TokenListClient,
    TokenListClientSettings,
)
from dex_indexer.infrastructure.db.engine import get_engine
from dex_indexer.infrastructure.db.repositories.price_series_repository import SqlPriceSeriesRepository
from dex_indexer.infrastructure.db.repositories.token_repository import SqlTokenRepository
from dex_indexer.shared.config import get_settings
from dex_indexer.shared.networks import load_network_registry


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _load_network_registry() -> NetworkRegistry:
    return load_network_registry(get_settings().networks_config_path)


def get_network_registry() -> NetworkRegistry:
    try:
        return _load_network_registry()
    except NetworkConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@lru_cache(maxsize=1)
def _get_subgraph_client() -> SubgraphClient:
    settings = get_settings()
    return SubgraphClient(
        SubgraphClientSettings(
            timeout_seconds=settings.subgraph_timeout_seconds,
            max_retries=settings.subgraph_max_retries,
            min_interval_ms=settings.subgraph_min_interval_ms,
            page_size=settings.subgraph_pool_limit,
        )
    )


@lru_cache(maxsize=1)
def _get_sdex_query_client() -> SdexQueryClient:
    settings = get_settings()
    return SdexQueryClient(SdexQueryClientSettings(timeout_seconds=settings.rpc_timeout_seconds))


@lru_cache(maxsize=1)
def _get_token_list_client() -> TokenListClient:
    settings = get_settings()
    return TokenListClient(
        TokenListClientSettings(
            base_url=settings.token_list_url,
            timeout_seconds=settings.token_list_timeout_seconds,
        )
    )


def _get_price_series_repository() -> SqlPriceSeriesRepository:
    return SqlPriceSeriesRepository(_get_db_engine())


def _get_token_repository() -> SqlTokenRepository:
    return SqlTokenRepository(_get_db_engine())


def build_run_price_cycle_use_case() -> RunPriceCycleUseCase:
    settings = get_settings()
    subgraph_client = _get_subgraph_client()
    return RunPriceCycleUseCase(
        network_registry=_load_network_registry(),
        token_port=_get_token_repository(),
        price_sources={
            NetworkFeature.LEGACY: DirectQuotePriceSource(
                token_quote_port=SubgraphTokenQuoteSource(client=subgraph_client),
            ),
            NetworkFeature.SDEX: GraphPriceSource(
                pool_port=SubgraphPoolSource(client=subgraph_client),
                spot_price_port=_get_sdex_query_client(),
                max_workers=settings.spot_price_max_workers,
            ),
        },
        store_price_series_use_case=StorePriceSeriesUseCase(
            price_series_port=_get_price_series_repository(),
        ),
    )


def build_refresh_tokens_use_case() -> RefreshTokensUseCase:
    return RefreshTokensUseCase(
        network_registry=_load_network_registry(),
        token_list_port=_get_token_list_client(),
        token_write_port=_get_token_repository(),
    )


def get_last_price_use_case() -> GetLastPriceUseCase:
    return GetLastPriceUseCase(
        network_registry=get_network_registry(),
        token_port=_get_token_repository(),
        price_query_port=_get_price_series_repository(),
    )


def get_price_history_use_case() -> GetPriceHistoryUseCase:
    return GetPriceHistoryUseCase(price_query_port=_get_price_series_repository())


def get_list_chains_use_case() -> ListChainsUseCase:
    return ListChainsUseCase(network_registry=get_network_registry())
