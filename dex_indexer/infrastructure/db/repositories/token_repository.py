from __future__ import annotations

from sqlalchemy import bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from dex_indexer.application.ports.token_port import TokenPort, TokenWritePort
from dex_indexer.domain.entities.token import StoredTokenMetadata, Token, TokenMetadata
from dex_indexer.domain.exceptions import PriceStoreError
from dex_indexer.infrastructure.db.mappers.price_mapper import (
    map_row_to_stored_token_metadata,
    map_row_to_token,
)


class SqlTokenRepository(TokenPort, TokenWritePort):
    def __init__(self, engine):
        self._engine = engine

    def list_tokens(self, *, chain_ids: list[int]) -> list[Token]:
        if not chain_ids:
            return []

        sql = text(
            """
            SELECT t.id, t.chain_id, lower(t.address) AS address, t.decimals
            FROM public.tokens t
            WHERE t.chain_id IN :chain_ids
              AND t.ignored = false
            ORDER BY t.chain_id, t.id
            """
        ).bindparams(bindparam("chain_ids", expanding=True))
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(sql, {"chain_ids": list(chain_ids)}).mappings().all()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to list tokens: {exc}") from exc
        return [map_row_to_token(row) for row in rows]

    def get_by_address(self, *, chain_id: int, address: str) -> Token | None:
        sql = """
            SELECT t.id, t.chain_id, lower(t.address) AS address, t.decimals
            FROM public.tokens t
            WHERE t.chain_id = :chain_id
              AND lower(t.address) = :address
            LIMIT 1
        """
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(sql),
                    {"chain_id": chain_id, "address": address.strip().lower()},
                ).mappings().first()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to read token: {exc}") from exc
        if not row:
            return None
        return map_row_to_token(row)

    def list_token_metadata(self, *, chain_id: int) -> list[StoredTokenMetadata]:
        sql = """
            SELECT lower(t.address) AS address, t.symbol, t.name, t.decimals, t.logo_url, t.ignored
            FROM public.tokens t
            WHERE t.chain_id = :chain_id
            ORDER BY t.id
        """
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(text(sql), {"chain_id": chain_id}).mappings().all()
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to list token metadata: {exc}") from exc
        return [map_row_to_stored_token_metadata(row) for row in rows]

    def upsert_tokens(self, *, chain_id: int, tokens: list[TokenMetadata]) -> int:
        if not tokens:
            return 0

        sql = """
            INSERT INTO public.tokens (chain_id, address, symbol, name, decimals, logo_url, ignored)
            VALUES (:chain_id, :address, :symbol, :name, :decimals, :logo_url, false)
            ON CONFLICT (chain_id, address) DO UPDATE SET
                symbol = EXCLUDED.symbol,
                name = EXCLUDED.name,
                decimals = EXCLUDED.decimals,
                logo_url = EXCLUDED.logo_url,
                ignored = false
        """
        params = [
            {
                "chain_id": chain_id,
                "address": token.address.strip().lower(),
                "symbol": token.symbol,
                "name": token.name,
                "decimals": token.decimals,
                "logo_url": token.logo_url,
            }
            for token in tokens
        ]
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql), params)
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to upsert tokens: {exc}") from exc
        return len(params)

    def mark_ignored(self, *, chain_id: int, addresses: list[str]) -> int:
        if not addresses:
            return 0

        sql = text(
            """
            UPDATE public.tokens
            SET ignored = true
            WHERE chain_id = :chain_id
              AND ignored = false
              AND lower(address) IN :addresses
            """
        ).bindparams(bindparam("addresses", expanding=True))
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    sql,
                    {
                        "chain_id": chain_id,
                        "addresses": sorted({address.strip().lower() for address in addresses}),
                    },
                )
        except SQLAlchemyError as exc:
            raise PriceStoreError(f"Failed to mark tokens ignored: {exc}") from exc
        return int(result.rowcount or 0)
