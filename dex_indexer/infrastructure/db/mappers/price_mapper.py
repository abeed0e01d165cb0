from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from dex_indexer.domain.entities.price import StoredPrice
from dex_indexer.domain.entities.token import StoredTokenMetadata, Token


def map_row_to_stored_price(row: Mapping[str, Any]) -> StoredPrice:
    return StoredPrice(
        token_id=int(row["token_id"]),
        value=Decimal(str(row["value"])),
        low=Decimal(str(row["low"])),
        high=Decimal(str(row["high"])),
        tick_at=row["tick_at"],
    )


def map_row_to_token(row: Mapping[str, Any]) -> Token:
    return Token(
        id=int(row["id"]),
        chain_id=int(row["chain_id"]),
        address=str(row["address"]).lower(),
        decimals=int(row["decimals"]) if row["decimals"] is not None else 18,
    )


def map_row_to_stored_token_metadata(row: Mapping[str, Any]) -> StoredTokenMetadata:
    return StoredTokenMetadata(
        address=str(row["address"]).lower(),
        symbol=row["symbol"],
        name=row["name"],
        decimals=int(row["decimals"]) if row["decimals"] is not None else 18,
        logo_url=row["logo_url"],
        ignored=bool(row["ignored"]),
    )
