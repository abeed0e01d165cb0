from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from dex_indexer.application.dto.price_series import StorePriceSeriesOutput
from dex_indexer.domain.entities.price import Granularity, PriceObservation


@dataclass(frozen=True)
class RunPriceCycleOutput:
    tick_at: datetime
    observations: list[PriceObservation]
    processed_chain_ids: list[int] = field(default_factory=list)
    failed_chain_ids: list[int] = field(default_factory=list)
    skipped_chain_ids: list[int] = field(default_factory=list)
    stored: dict[Granularity, StorePriceSeriesOutput] = field(default_factory=dict)
