from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from dex_indexer.application.use_cases.store_price_series import StorePriceSeriesUseCase
from dex_indexer.domain.entities.price import Granularity, PriceObservation, PriceWrite, StoredPrice
from dex_indexer.domain.exceptions import PriceStoreError


class FakePriceSeriesPort:
    """In-memory tables that widen high/low on conflict, like the SQL upsert."""

    def __init__(self, *, fail_batches: bool = False, failing_token_ids: set[int] | None = None):
        self.tables: dict[Granularity, dict[tuple[int, datetime], StoredPrice]] = {
            granularity: {} for granularity in Granularity
        }
        self.upsert_calls: list[tuple[Granularity, list[PriceWrite]]] = []
        self._fail_batches = fail_batches
        self._failing_token_ids = failing_token_ids or set()

    def load_last_prices(
        self,
        *,
        granularity: Granularity,
        token_ids: list[int],
        at: datetime,
    ) -> dict[int, StoredPrice]:
        result: dict[int, StoredPrice] = {}
        for (token_id, tick_at), row in self.tables[granularity].items():
            if token_id not in token_ids or tick_at > at:
                continue
            current = result.get(token_id)
            if current is None or current.tick_at < tick_at:
                result[token_id] = row
        return result

    def upsert_prices(self, *, granularity: Granularity, rows: list[PriceWrite]) -> int:
        self.upsert_calls.append((granularity, list(rows)))
        if self._fail_batches and len(rows) > 1:
            raise PriceStoreError("batch rejected")
        if any(row.token_id in self._failing_token_ids for row in rows):
            raise PriceStoreError("row rejected")

        table = self.tables[granularity]
        for row in rows:
            key = (row.token_id, row.tick_at)
            existing = table.get(key)
            high = row.high if existing is None else max(existing.high, row.high)
            low = row.low if existing is None else min(existing.low, row.low)
            table[key] = StoredPrice(
                token_id=row.token_id,
                value=row.value,
                high=high,
                low=low,
                tick_at=row.tick_at,
            )
        return len(rows)


def _obs(token_id: int, value: str) -> PriceObservation:
    return PriceObservation(
        token_id=token_id,
        chain_id=30,
        address=f"0x{token_id:040x}",
        value=Decimal(value),
        observed_at=datetime(2026, 3, 14, 15, 0),
    )


def test_hourly_bucket_tracks_value_high_and_low_across_cycles():
    port = FakePriceSeriesPort()
    use_case = StorePriceSeriesUseCase(price_series_port=port)

    for minute, value in ((1, "10"), (2, "15"), (3, "8")):
        use_case.execute(
            observations=[_obs(1, value)],
            as_of=datetime(2026, 3, 14, 15, minute),
            granularity=Granularity.HOUR,
        )

    row = port.tables[Granularity.HOUR][(1, datetime(2026, 3, 14, 15, 0))]
    assert (row.value, row.high, row.low) == (Decimal(8), Decimal(15), Decimal(8))
    assert len(port.tables[Granularity.HOUR]) == 1


def test_unchanged_price_writes_nothing():
    port = FakePriceSeriesPort()
    use_case = StorePriceSeriesUseCase(price_series_port=port)

    use_case.execute(
        observations=[_obs(1, "10")],
        as_of=datetime(2026, 3, 14, 15, 1),
        granularity=Granularity.MINUTE,
    )
    result = use_case.execute(
        observations=[_obs(1, "10.0")],
        as_of=datetime(2026, 3, 14, 15, 2),
        granularity=Granularity.MINUTE,
    )

    assert result.written == 0
    assert result.skipped == 1
    assert len(port.tables[Granularity.MINUTE]) == 1
    assert len(port.upsert_calls) == 1


def test_empty_observations_are_a_noop():
    port = FakePriceSeriesPort()
    result = StorePriceSeriesUseCase(price_series_port=port).execute(
        observations=[],
        as_of=datetime(2026, 3, 14, 15, 1),
        granularity=Granularity.DAY,
    )

    assert result.written == 0
    assert result.bucket == datetime(2026, 3, 14)
    assert port.upsert_calls == []


def test_batch_failure_falls_back_to_rows_and_reports_failures():
    port = FakePriceSeriesPort(fail_batches=True, failing_token_ids={2})
    result = StorePriceSeriesUseCase(price_series_port=port).execute(
        observations=[_obs(1, "1"), _obs(2, "2"), _obs(3, "3")],
        as_of=datetime(2026, 3, 14, 15, 1),
        granularity=Granularity.MINUTE,
    )

    assert result.written == 2
    assert result.failed_token_ids == [2]
    assert result.error == "row rejected"
    assert sorted(token_id for token_id, _ in port.tables[Granularity.MINUTE]) == [1, 3]


def test_execute_all_writes_every_granularity():
    port = FakePriceSeriesPort()
    results = StorePriceSeriesUseCase(price_series_port=port).execute_all(
        observations=[_obs(1, "5")],
        as_of=datetime(2026, 3, 14, 15, 7, 30),
    )

    assert set(results) == {Granularity.MINUTE, Granularity.HOUR, Granularity.DAY}
    assert (1, datetime(2026, 3, 14, 15, 7)) in port.tables[Granularity.MINUTE]
    assert (1, datetime(2026, 3, 14, 15, 0)) in port.tables[Granularity.HOUR]
    assert (1, datetime(2026, 3, 14)) in port.tables[Granularity.DAY]


def test_load_failure_is_isolated_per_granularity():
    class BrokenHourlyPort(FakePriceSeriesPort):
        def load_last_prices(self, *, granularity, token_ids, at):
            if granularity is Granularity.HOUR:
                raise PriceStoreError("hourly table unavailable")
            return super().load_last_prices(granularity=granularity, token_ids=token_ids, at=at)

    port = BrokenHourlyPort()
    results = StorePriceSeriesUseCase(price_series_port=port).execute_all(
        observations=[_obs(1, "5")],
        as_of=datetime(2026, 3, 14, 15, 7),
    )

    assert results[Granularity.HOUR].error == "hourly table unavailable"
    assert results[Granularity.HOUR].failed_token_ids == [1]
    assert results[Granularity.MINUTE].written == 1
    assert results[Granularity.DAY].written == 1


def test_unstorable_price_is_reported_without_blocking_other_tokens():
    port = FakePriceSeriesPort()
    results = StorePriceSeriesUseCase(price_series_port=port).execute_all(
        observations=[_obs(1, "5"), _obs(2, "1.156E+113"), _obs(3, "1E-20")],
        as_of=datetime(2026, 3, 14, 15, 7),
    )

    for granularity, result in results.items():
        assert result.written == 1
        assert result.failed_token_ids == [2, 3]
        assert [token_id for token_id, _ in port.tables[granularity]] == [1]
