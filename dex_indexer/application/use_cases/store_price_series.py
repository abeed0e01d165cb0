from __future__ import annotations

import logging
from datetime import datetime

from dex_indexer.application.dto.price_series import StorePriceSeriesOutput
from dex_indexer.application.ports.price_series_port import PriceSeriesPort
from dex_indexer.domain.entities.price import Granularity, PriceObservation
from dex_indexer.domain.exceptions import PriceStoreError
from dex_indexer.domain.services.price_series import (
    latest_observation_per_token,
    prepare_price_writes,
    storable_value,
    truncate_to_bucket,
)


logger = logging.getLogger(__name__)

SERIES_GRANULARITIES = (Granularity.MINUTE, Granularity.HOUR, Granularity.DAY)


class StorePriceSeriesUseCase:
    def __init__(self, *, price_series_port: PriceSeriesPort):
        self._price_series_port = price_series_port

    def execute(
        self,
        *,
        observations: list[PriceObservation],
        as_of: datetime,
        granularity: Granularity,
    ) -> StorePriceSeriesOutput:
        bucket = truncate_to_bucket(as_of, granularity)
        latest = latest_observation_per_token(observations)
        rejected = sorted(
            token_id for token_id, item in latest.items() if storable_value(item.value) is None
        )
        if rejected:
            logger.warning(
                "store_price_series: unstorable prices granularity=%s token_ids=%s",
                granularity.value,
                rejected,
            )
        storable = {token_id: item for token_id, item in latest.items() if token_id not in rejected}
        if not storable:
            return StorePriceSeriesOutput(
                granularity=granularity,
                bucket=bucket,
                observed=len(latest),
                written=0,
                skipped=0,
                failed_token_ids=rejected,
            )

        try:
            last_prices = self._price_series_port.load_last_prices(
                granularity=granularity,
                token_ids=sorted(storable),
                at=bucket,
            )
        except PriceStoreError as exc:
            logger.error(
                "store_price_series: load failed granularity=%s bucket=%s error=%s",
                granularity.value,
                bucket,
                exc,
            )
            return StorePriceSeriesOutput(
                granularity=granularity,
                bucket=bucket,
                observed=len(latest),
                written=0,
                skipped=0,
                failed_token_ids=sorted(latest),
                error=str(exc),
            )

        writes = prepare_price_writes(
            last_prices=last_prices,
            observations=storable.values(),
            bucket=bucket,
        )
        skipped = len(storable) - len(writes)
        if not writes:
            return StorePriceSeriesOutput(
                granularity=granularity,
                bucket=bucket,
                observed=len(latest),
                written=0,
                skipped=skipped,
                failed_token_ids=rejected,
            )

        try:
            self._price_series_port.upsert_prices(granularity=granularity, rows=writes)
        except PriceStoreError as exc:
            logger.warning(
                "store_price_series: batch upsert failed granularity=%s rows=%s error=%s; retrying per row",
                granularity.value,
                len(writes),
                exc,
            )
        else:
            logger.info(
                "store_price_series: stored granularity=%s bucket=%s written=%s skipped=%s",
                granularity.value,
                bucket,
                len(writes),
                skipped,
            )
            return StorePriceSeriesOutput(
                granularity=granularity,
                bucket=bucket,
                observed=len(latest),
                written=len(writes),
                skipped=skipped,
                failed_token_ids=rejected,
            )

        written = 0
        failed: list[int] = list(rejected)
        last_error: str | None = None
        for row in writes:
            try:
                self._price_series_port.upsert_prices(granularity=granularity, rows=[row])
            except PriceStoreError as exc:
                failed.append(row.token_id)
                last_error = str(exc)
                logger.error(
                    "store_price_series: row upsert failed granularity=%s token_id=%s error=%s",
                    granularity.value,
                    row.token_id,
                    exc,
                )
                continue
            written += 1

        return StorePriceSeriesOutput(
            granularity=granularity,
            bucket=bucket,
            observed=len(latest),
            written=written,
            skipped=skipped,
            failed_token_ids=sorted(failed),
            error=last_error,
        )

    def execute_all(
        self,
        *,
        observations: list[PriceObservation],
        as_of: datetime,
    ) -> dict[Granularity, StorePriceSeriesOutput]:
        return {
            granularity: self.execute(
                observations=observations,
                as_of=as_of,
                granularity=granularity,
            )
            for granularity in SERIES_GRANULARITIES
        }
