from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from dex_indexer.domain.entities.price import Granularity


@dataclass(frozen=True)
class StorePriceSeriesOutput:
    granularity: Granularity
    bucket: datetime
    observed: int
    written: int
    skipped: int
    failed_token_ids: list[int] = field(default_factory=list)
    error: str | None = None
