from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from dex_indexer.application.dto.price_cycle import RunPriceCycleOutput
from dex_indexer.application.ports.chain_price_source_port import ChainPriceSource
from dex_indexer.application.ports.token_port import TokenPort
from dex_indexer.application.use_cases.store_price_series import StorePriceSeriesUseCase
from dex_indexer.domain.entities.network import Network, NetworkFeature, NetworkRegistry
from dex_indexer.domain.entities.price import Granularity, PriceObservation
from dex_indexer.domain.entities.token import Token
from dex_indexer.domain.exceptions import ChainSourceError
from dex_indexer.domain.services.price_series import truncate_to_bucket


logger = logging.getLogger(__name__)

# Later features overwrite earlier ones for the same token.
FEATURE_ORDER = (NetworkFeature.LEGACY, NetworkFeature.SDEX)


class RunPriceCycleUseCase:
    """One pricing pass over every registered chain.

    Chains run one after another. A chain whose source fails is logged and left
    out of the cycle; the remaining chains are still priced and stored. The merged
    observations are written to the minute, hour and day series.
    """

    def __init__(
        self,
        *,
        network_registry: NetworkRegistry,
        token_port: TokenPort,
        price_sources: Mapping[NetworkFeature, ChainPriceSource],
        store_price_series_use_case: StorePriceSeriesUseCase,
    ):
        self._network_registry = network_registry
        self._token_port = token_port
        self._price_sources = dict(price_sources)
        self._store_price_series_use_case = store_price_series_use_case

    def execute(self, as_of: datetime | None = None) -> RunPriceCycleOutput:
        tick_at = truncate_to_bucket(as_of or datetime.now(timezone.utc), Granularity.MINUTE)
        networks = self._network_registry.list_chains()
        tokens = self._token_port.list_tokens(chain_ids=[network.chain_id for network in networks])
        tokens_by_chain: dict[int, list[Token]] = {}
        for token in tokens:
            tokens_by_chain.setdefault(token.chain_id, []).append(token)

        observations: list[PriceObservation] = []
        processed: list[int] = []
        failed: list[int] = []
        skipped: list[int] = []

        for feature in FEATURE_ORDER:
            source = self._price_sources.get(feature)
            if source is None:
                continue
            for network in networks:
                if not network.has_feature(feature):
                    continue
                chain_tokens = tokens_by_chain.get(network.chain_id, [])
                if not chain_tokens:
                    logger.info(
                        "price_cycle: no tracked tokens chain_id=%s feature=%s",
                        network.chain_id,
                        feature.value,
                    )
                    continue
                chain_observations = self._resolve_chain(
                    source=source,
                    feature=feature,
                    network=network,
                    tokens=chain_tokens,
                    tick_at=tick_at,
                )
                if chain_observations is None:
                    if network.chain_id not in failed:
                        failed.append(network.chain_id)
                    continue
                observations.extend(chain_observations)
                if network.chain_id not in processed:
                    processed.append(network.chain_id)

        for network in networks:
            if network.chain_id not in processed and network.chain_id not in failed:
                skipped.append(network.chain_id)

        stored = self._store_price_series_use_case.execute_all(
            observations=observations,
            as_of=tick_at,
        )
        logger.info(
            "price_cycle: done tick_at=%s observations=%s processed=%s failed=%s skipped=%s",
            tick_at,
            len(observations),
            processed,
            failed,
            skipped,
        )
        return RunPriceCycleOutput(
            tick_at=tick_at,
            observations=observations,
            processed_chain_ids=processed,
            failed_chain_ids=failed,
            skipped_chain_ids=skipped,
            stored=stored,
        )

    def _resolve_chain(
        self,
        *,
        source: ChainPriceSource,
        feature: NetworkFeature,
        network: Network,
        tokens: list[Token],
        tick_at: datetime,
    ) -> list[PriceObservation] | None:
        try:
            return source.resolve(network=network, tokens=tokens, observed_at=tick_at)
        except ChainSourceError as exc:
            logger.warning(
                "price_cycle: chain source failed chain_id=%s feature=%s error=%s",
                network.chain_id,
                feature.value,
                exc,
            )
        except Exception:  # noqa: BLE001
            logger.exception(
                "price_cycle: unexpected chain failure chain_id=%s feature=%s",
                network.chain_id,
                feature.value,
            )
        return None
