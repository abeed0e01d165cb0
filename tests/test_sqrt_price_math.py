from __future__ import annotations

from decimal import Decimal

import pytest

from dex_indexer.domain.services.sqrt_price_math import (
    raw_price_to_display,
    spot_price_from_sqrt_q64,
    sqrt_price_q64_to_price,
)


def test_sqrt_price_q64_decodes_square():
    assert sqrt_price_q64_to_price(2**64) == Decimal(1)
    assert sqrt_price_q64_to_price(2**65) == Decimal(4)


def test_sqrt_price_q64_rejects_zero():
    with pytest.raises(ValueError):
        sqrt_price_q64_to_price(0)


def test_raw_price_to_display_scales_by_decimals_delta():
    assert raw_price_to_display(Decimal(1), 18, 6) == Decimal("1E-12")
    assert raw_price_to_display(Decimal(3), 6, 6) == Decimal(3)


def test_spot_price_from_sqrt_q64_sets_both_directions():
    spot = spot_price_from_sqrt_q64(
        base="0x1000000000000000000000000000000000000001",
        quote="0x2000000000000000000000000000000000000002",
        pool_idx=36000,
        sqrt_price_q64=2**65,
        base_decimals=18,
        quote_decimals=18,
    )

    assert spot.quote_to_base == Decimal(4)
    assert spot.base_to_quote == Decimal("0.25")
    assert spot.pool_idx == 36000


def test_spot_price_from_sqrt_q64_requires_canonical_order():
    with pytest.raises(ValueError):
        spot_price_from_sqrt_q64(
            base="0x2000000000000000000000000000000000000002",
            quote="0x1000000000000000000000000000000000000001",
            pool_idx=36000,
            sqrt_price_q64=2**64,
            base_decimals=18,
            quote_decimals=18,
        )
