from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from dex_indexer.domain.entities.token import StoredTokenMetadata, TokenMetadata
from dex_indexer.domain.services.pair_orientation import normalize_address


@dataclass(frozen=True)
class TokenRefreshPlan:
    upserts: list[TokenMetadata] = field(default_factory=list)
    ignore_addresses: list[str] = field(default_factory=list)


def normalize_token_list(entries: Iterable[TokenMetadata]) -> list[TokenMetadata]:
    """Lowercase addresses and keep the first entry listed for each address."""
    seen: set[str] = set()
    result: list[TokenMetadata] = []
    for entry in entries:
        address = normalize_address(entry.address)
        if not address or address in seen:
            continue
        seen.add(address)
        result.append(replace(entry, address=address))
    return result


def _metadata_changed(stored: StoredTokenMetadata, listed: TokenMetadata) -> bool:
    return (
        stored.symbol != listed.symbol
        or stored.name != listed.name
        or stored.decimals != listed.decimals
        or stored.logo_url != listed.logo_url
    )


def plan_token_refresh(
    *,
    stored: Iterable[StoredTokenMetadata],
    listed: Iterable[TokenMetadata],
) -> TokenRefreshPlan:
    """Compare the stored tokens of one chain with its published token list.

    Listed tokens that are new, changed, or currently ignored are upserted as
    tracked. Stored tokens missing from the list are ignored, unless they already are.
    """
    remaining = {normalize_address(item.address): item for item in stored}
    upserts: list[TokenMetadata] = []

    for entry in normalize_token_list(listed):
        current = remaining.pop(entry.address, None)
        if current is None or current.ignored or _metadata_changed(current, entry):
            upserts.append(entry)

    ignore_addresses = sorted(address for address, item in remaining.items() if not item.ignored)
    return TokenRefreshPlan(upserts=upserts, ignore_addresses=ignore_addresses)
