from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal

from dex_indexer.domain.entities.price import Granularity, PriceObservation, PriceWrite, StoredPrice
from dex_indexer.domain.exceptions import InvalidComposedPriceError
from dex_indexer.domain.services.price_composer import round_price


def to_utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def truncate_to_bucket(moment: datetime, granularity: Granularity) -> datetime:
    moment = to_utc_naive(moment)
    if granularity is Granularity.MINUTE:
        return moment.replace(second=0, microsecond=0)
    if granularity is Granularity.HOUR:
        return moment.replace(minute=0, second=0, microsecond=0)
    if granularity is Granularity.DAY:
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    raise ValueError(f"Unsupported granularity: {granularity}")


def latest_observation_per_token(
    observations: Iterable[PriceObservation],
) -> dict[int, PriceObservation]:
    latest: dict[int, PriceObservation] = {}
    for item in observations:
        latest[item.token_id] = item
    return latest


def storable_value(value: Decimal) -> Decimal | None:
    """Round value to the stored scale; None when it cannot be stored as a price."""
    if not value.is_finite():
        return None
    try:
        rounded = round_price(value)
    except InvalidComposedPriceError:
        return None
    if rounded <= 0:
        return None
    return rounded


def prepare_price_writes(
    *,
    last_prices: Mapping[int, StoredPrice],
    observations: Iterable[PriceObservation],
    bucket: datetime,
) -> list[PriceWrite]:
    """Decide which rows to upsert for one bucket.

    A token is written when it has no stored row at or before the bucket, or when
    its latest stored value differs from the new one. High and low extend the
    stored row only when that row belongs to the same bucket; a new bucket starts
    with high = low = value. Values that round to zero or below, or that do not
    fit the stored scale, are never written.
    """
    writes: list[PriceWrite] = []
    for token_id, item in latest_observation_per_token(observations).items():
        value = storable_value(item.value)
        if value is None:
            continue
        last = last_prices.get(token_id)
        if last is not None and last.value == value:
            continue

        if last is not None and to_utc_naive(last.tick_at) == bucket:
            high = max(last.high, value)
            low = min(last.low, value)
        else:
            high = value
            low = value

        writes.append(
            PriceWrite(
                token_id=token_id,
                value=value,
                high=high,
                low=low,
                tick_at=bucket,
            )
        )
    return writes
