from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy import bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from dex_indexer.application.ports.price_query_port import PriceQueryPort
from dex_indexer.application.ports.price_series_port import PriceSeriesPort
from dex_indexer.domain.entities.price import Granularity, PriceWrite, StoredPrice
from dex_indexer.domain.exceptions import PriceStoreError
from dex_indexer.domain.services.price_composer import format_price
from dex_indexer.infrastructure.db.mappers.price_mapper import map_row_to_stored_price


logger = logging.getLogger(__name__)


PRICE_TABLES = {
    Granularity.MINUTE: "public.prices_usd",
    Granularity.HOUR: "public.prices_usd_hourly",
    Granularity.DAY: "public.prices_usd_daily",
}


class SqlPriceSeriesRepository(PriceSeriesPort, PriceQueryPort):
    def __init__(self, engine):
        self._engine = engine

    @staticmethod
    def _table(granularity: Granularity) -> str:
        table = PRICE_TABLES.get(granularity)
        if table is None:
            raise ValueError(f"Unsupported granularity: {granularity}")
        return table

    def load_last_prices(
        self,
        *,
        granularity: Granularity,
        token_ids: list[int],
        at: datetime,
    ) -> dict[int, StoredPrice]:
        if not token_ids:
            return {}

        sql = text(
            f"""
            SELECT DISTINCT ON (p.token_id)
                p.token_id,
                p.value,
                p.low,
                p.high,
                p.tick_at
            FROM {self._table(granularity)} p
            WHERE p.token_id IN :token_ids
              AND p.tick_at <= :at
            ORDER BY p.token_id, p.tick_at DESC
            """
        ).bindparams(bindparam("token_ids", expanding=True))

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    sql,
                    {"token_ids": list(token_ids), "at": at},
                ).mappings().all()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to load last {granularity.value} prices: {exc}") from exc

        result = {int(row["token_id"]): map_row_to_stored_price(row) for row in rows}
        logger.debug(
            "price_series_repo: load_last_prices granularity=%s requested=%s found=%s at=%s",
            granularity.value,
            len(token_ids),
            len(result),
            at,
        )
        return result

    def upsert_prices(self, *, granularity: Granularity, rows: list[PriceWrite]) -> int:
        if not rows:
            return 0

        table = self._table(granularity)
        # Existing high/low are only ever widened, so concurrent writers converge.
        sql = text(
            f"""
            INSERT INTO {table} AS p (token_id, value, high, low, tick_at)
            VALUES (:token_id, :value, :high, :low, :tick_at)
            ON CONFLICT (token_id, tick_at)
            DO UPDATE SET
                value = EXCLUDED.value,
                high = CASE
                    WHEN EXCLUDED.high::numeric > p.high::numeric THEN EXCLUDED.high
                    ELSE p.high
                END,
                low = CASE
                    WHEN EXCLUDED.low::numeric < p.low::numeric THEN EXCLUDED.low
                    ELSE p.low
                END
            """
        )
        params = [
            {
                "token_id": row.token_id,
                "value": format_price(row.value),
                "high": format_price(row.high),
                "low": format_price(row.low),
                "tick_at": row.tick_at,
            }
            for row in rows
        ]

        try:
            with self._engine.begin() as conn:
                conn.execute(sql, params)
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to upsert {granularity.value} prices: {exc}") from exc

        logger.info("price_series_repo: upsert_prices granularity=%s rows=%s", granularity.value, len(rows))
        return len(rows)

    def get_latest_prices(
        self,
        *,
        granularity: Granularity,
        token_ids: list[int],
    ) -> dict[int, StoredPrice]:
        if not token_ids:
            return {}

        sql = text(
            f"""
            SELECT DISTINCT ON (p.token_id)
                p.token_id,
                p.value,
                p.low,
                p.high,
                p.tick_at
            FROM {self._table(granularity)} p
            WHERE p.token_id IN :token_ids
            ORDER BY p.token_id, p.tick_at DESC
            """
        ).bindparams(bindparam("token_ids", expanding=True))

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(sql, {"token_ids": list(token_ids)}).mappings().all()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to read latest {granularity.value} prices: {exc}") from exc
        return {int(row["token_id"]): map_row_to_stored_price(row) for row in rows}

    def get_series(
        self,
        *,
        granularity: Granularity,
        token_id: int,
        start: datetime,
        end: datetime,
    ) -> list[StoredPrice]:
        sql = text(
            f"""
            SELECT
                p.token_id,
                p.value,
                p.low,
                p.high,
                p.tick_at
            FROM {self._table(granularity)} p
            WHERE p.token_id = :token_id
              AND p.tick_at >= :start
              AND p.tick_at < :end
            ORDER BY p.tick_at ASC
            """
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    sql,
                    {"token_id": token_id, "start": start, "end": end},
                ).mappings().all()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to read {granularity.value} series: {exc}") from exc
        return [map_row_to_stored_price(row) for row in rows]
