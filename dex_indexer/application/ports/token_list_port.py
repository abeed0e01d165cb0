from __future__ import annotations

from typing import Protocol

from dex_indexer.domain.entities.token import TokenMetadata


class TokenListPort(Protocol):
    def fetch_token_list(self, *, chain_id: int) -> list[TokenMetadata]:
        ...
