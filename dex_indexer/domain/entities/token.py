from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    id: int
    chain_id: int
    address: str
    decimals: int


@dataclass(frozen=True)
class TokenMetadata:
    address: str
    symbol: str | None
    name: str | None
    decimals: int
    logo_url: str | None = None


@dataclass(frozen=True)
class StoredTokenMetadata(TokenMetadata):
    ignored: bool = False
