from __future__ import annotations

from dex_indexer.application.dto.price_query import GetPriceHistoryInput, GetPriceHistoryOutput
from dex_indexer.application.ports.price_query_port import PriceQueryPort
from dex_indexer.domain.exceptions import PriceQueryInputError
from dex_indexer.domain.services.price_series import to_utc_naive


class GetPriceHistoryUseCase:
    def __init__(self, *, price_query_port: PriceQueryPort):
        self._price_query_port = price_query_port

    def execute(self, command: GetPriceHistoryInput) -> GetPriceHistoryOutput:
        if command.token_id <= 0:
            raise PriceQueryInputError("token_id must be a positive integer.")
        start = to_utc_naive(command.start)
        end = to_utc_naive(command.end)
        if start >= end:
            raise PriceQueryInputError("start must be earlier than end.")

        series = self._price_query_port.get_series(
            granularity=command.granularity,
            token_id=command.token_id,
            start=start,
            end=end,
        )
        return GetPriceHistoryOutput(
            token_id=command.token_id,
            granularity=command.granularity,
            series=sorted(series, key=lambda row: row.tick_at),
        )
