from __future__ import annotations

from dex_indexer.domain.entities.token import StoredTokenMetadata, TokenMetadata
from dex_indexer.domain.services.token_list import normalize_token_list, plan_token_refresh


def _listed(address: str, symbol: str = "TKN", decimals: int = 18) -> TokenMetadata:
    return TokenMetadata(address=address, symbol=symbol, name=symbol, decimals=decimals)


def _stored(address: str, symbol: str = "TKN", decimals: int = 18, ignored: bool = False) -> StoredTokenMetadata:
    return StoredTokenMetadata(address=address, symbol=symbol, name=symbol, decimals=decimals, ignored=ignored)


def test_normalize_token_list_lowercases_and_keeps_first_duplicate():
    entries = [_listed("0xABC", "FIRST"), _listed("0xabc", "SECOND"), _listed("  "), _listed("0xDEF")]

    result = normalize_token_list(entries)

    assert [(item.address, item.symbol) for item in result] == [("0xabc", "FIRST"), ("0xdef", "TKN")]


def test_plan_upserts_new_changed_and_ignored_tokens_only():
    stored = [
        _stored("0xa"),
        _stored("0xb", decimals=8),
        _stored("0xc", ignored=True),
    ]
    listed = [_listed("0xA"), _listed("0xb", decimals=18), _listed("0xc"), _listed("0xd")]

    plan = plan_token_refresh(stored=stored, listed=listed)

    assert [item.address for item in plan.upserts] == ["0xb", "0xc", "0xd"]
    assert plan.ignore_addresses == []


def test_plan_ignores_delisted_tokens_that_are_still_tracked():
    stored = [_stored("0xa"), _stored("0xz"), _stored("0xy", ignored=True)]

    plan = plan_token_refresh(stored=stored, listed=[_listed("0xa")])

    assert plan.upserts == []
    assert plan.ignore_addresses == ["0xz"]
