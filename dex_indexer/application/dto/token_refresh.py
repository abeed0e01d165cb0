from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RefreshTokensOutput:
    refreshed_chain_ids: list[int] = field(default_factory=list)
    failed_chain_ids: list[int] = field(default_factory=list)
    skipped_chain_ids: list[int] = field(default_factory=list)
    upserted: dict[int, int] = field(default_factory=dict)
    ignored: dict[int, int] = field(default_factory=dict)
