from __future__ import annotations

from decimal import Decimal


def normalize_address(address: str) -> str:
    return address.strip().lower()


def canonical_pair(token_a: str, token_b: str) -> tuple[str, str]:
    """Return (base, quote) with the lower-sorted address as base."""
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    return (a, b) if a < b else (b, a)


def invert_decimal_price(price: Decimal, *, field_name: str = "price") -> Decimal:
    if not price.is_finite() or price <= 0:
        raise ValueError(f"{field_name} must be positive.")
    return Decimal("1") / price
