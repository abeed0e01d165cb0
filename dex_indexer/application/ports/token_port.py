from __future__ import annotations

from typing import Protocol

from dex_indexer.domain.entities.token import StoredTokenMetadata, Token, TokenMetadata


class TokenPort(Protocol):
    def list_tokens(self, *, chain_ids: list[int]) -> list[Token]:
        ...

    def get_by_address(self, *, chain_id: int, address: str) -> Token | None:
        ...


class TokenWritePort(Protocol):
    def list_token_metadata(self, *, chain_id: int) -> list[StoredTokenMetadata]:
        ...

    def upsert_tokens(self, *, chain_id: int, tokens: list[TokenMetadata]) -> int:
        ...

    def mark_ignored(self, *, chain_id: int, addresses: list[str]) -> int:
        ...
