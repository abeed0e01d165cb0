from __future__ import annotations

from decimal import Decimal, localcontext

from dex_indexer.domain.entities.pool import PoolSpotPrice
from dex_indexer.domain.services.pair_orientation import canonical_pair, invert_decimal_price
from dex_indexer.domain.services.price_composer import PRICE_CONTEXT


Q64 = Decimal(2) ** 64


def sqrt_price_q64_to_price(sqrt_price_q64: int) -> Decimal:
    """Decode a Q64.64 square-root price into a raw base-per-quote ratio."""
    if sqrt_price_q64 <= 0:
        raise ValueError("Invalid sqrt_price_q64.")
    with localcontext(PRICE_CONTEXT):
        sqrt_price = Decimal(sqrt_price_q64) / Q64
        return sqrt_price * sqrt_price


def raw_price_to_display(raw_price: Decimal, base_decimals: int, quote_decimals: int) -> Decimal:
    """Scale a raw base-per-quote ratio into whole-token units."""
    with localcontext(PRICE_CONTEXT):
        return raw_price * (Decimal(10) ** (quote_decimals - base_decimals))


def spot_price_from_sqrt_q64(
    *,
    base: str,
    quote: str,
    pool_idx: int,
    sqrt_price_q64: int,
    base_decimals: int,
    quote_decimals: int,
) -> PoolSpotPrice:
    canonical_base, canonical_quote = canonical_pair(base, quote)
    if (canonical_base, canonical_quote) != (base.lower(), quote.lower()):
        raise ValueError("base and quote must be in canonical order.")

    base_per_quote = raw_price_to_display(
        sqrt_price_q64_to_price(sqrt_price_q64),
        base_decimals,
        quote_decimals,
    )
    with localcontext(PRICE_CONTEXT):
        quote_per_base = invert_decimal_price(base_per_quote, field_name="spot_price")
    return PoolSpotPrice(
        base=canonical_base,
        quote=canonical_quote,
        pool_idx=pool_idx,
        base_to_quote=quote_per_base,
        quote_to_base=base_per_quote,
    )
