from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Context, Decimal, localcontext
from typing import TypeVar

from dex_indexer.domain.entities.pool import PoolRef, PoolSpotPrice
from dex_indexer.domain.exceptions import (
    InvalidComposedPriceError,
    MissingHopPriceError,
    UnreachableTokenError,
)
from dex_indexer.domain.services.pair_orientation import normalize_address


MAX_DECIMAL_PLACES = 18
PRICE_CONTEXT = Context(prec=78, rounding=ROUND_HALF_EVEN)

ItemT = TypeVar("ItemT")


def group_path_in_pairs(items: Sequence[ItemT]) -> list[tuple[ItemT, ItemT]]:
    return [(items[idx], items[idx + 1]) for idx in range(len(items) - 1)]


class PriceBook:
    """Directed hop rates for one chain at one point in time.

    Every spot price is registered in both directions: the canonical quote
    (base -> quote) and its reciprocal (quote -> base). Pools that were listed but
    could not be priced are remembered so that a hop over them fails explicitly.
    """

    def __init__(self, spot_prices: Iterable[PoolSpotPrice], pools: Iterable[PoolRef] = ()):
        self._rates: dict[tuple[str, str, int], Decimal] = {}
        self._pool_indexes: dict[frozenset[str], list[int]] = {}

        for pool in pools:
            self._remember_pool(pool.base, pool.quote, pool.pool_idx)

        for item in spot_prices:
            base = normalize_address(item.base)
            quote = normalize_address(item.quote)
            pool_idx = int(item.pool_idx)
            self._rates[(base, quote, pool_idx)] = item.base_to_quote
            self._rates[(quote, base, pool_idx)] = item.quote_to_base
            self._remember_pool(base, quote, pool_idx)

    def _remember_pool(self, token_a: str, token_b: str, pool_idx: int) -> None:
        key = frozenset((normalize_address(token_a), normalize_address(token_b)))
        indexes = self._pool_indexes.setdefault(key, [])
        if int(pool_idx) not in indexes:
            indexes.append(int(pool_idx))

    def get_rate(self, from_token: str, to_token: str, pool_idx: int) -> Decimal:
        key = (normalize_address(from_token), normalize_address(to_token), int(pool_idx))
        rate = self._rates.get(key)
        if rate is None:
            raise MissingHopPriceError(
                f"No spot price for hop {key[0]} -> {key[1]} (pool_idx={key[2]})."
            )
        return rate

    def resolve_pool_idx(self, from_token: str, to_token: str) -> int:
        """Pick the pool for a hop: the first listed pool that has a price."""
        a = normalize_address(from_token)
        b = normalize_address(to_token)
        indexes = self._pool_indexes.get(frozenset((a, b)))
        if not indexes:
            raise MissingHopPriceError(f"No pool connects {a} and {b}.")
        for pool_idx in indexes:
            if (a, b, pool_idx) in self._rates:
                return pool_idx
        return indexes[0]


def compose_price(path: Sequence[str], price_book: PriceBook) -> Decimal:
    """Multiply hop rates along path, left to right, starting from 1.

    A single-node path is the identity conversion and yields exactly 1. An empty
    path means no route was found and is rejected. The result is rounded to the
    stored scale, so a value too large to store or one that rounds to zero is
    rejected here rather than at write time.
    """
    if not path:
        raise UnreachableTokenError("Cannot compose a price over an empty path.")
    if len(path) == 1:
        return Decimal(1)

    try:
        with localcontext(PRICE_CONTEXT):
            price = Decimal(1)
            for from_token, to_token in group_path_in_pairs(path):
                pool_idx = price_book.resolve_pool_idx(from_token, to_token)
                price = price * price_book.get_rate(from_token, to_token, pool_idx)
            if not price.is_finite() or price <= 0:
                raise InvalidComposedPriceError(f"Composed price is not usable: {price}")
            rounded = round_price(price)
    except ArithmeticError as exc:
        raise InvalidComposedPriceError(f"Composed price failed: {exc}") from exc

    if rounded <= 0:
        raise InvalidComposedPriceError(f"Composed price rounds to zero: {price}")
    return rounded


def format_price(value: Decimal, places: int = MAX_DECIMAL_PLACES) -> str:
    if not value.is_finite():
        raise InvalidComposedPriceError(f"Cannot format non-finite price: {value}")
    try:
        with localcontext(PRICE_CONTEXT):
            quantized = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    except ArithmeticError as exc:
        raise InvalidComposedPriceError(f"Cannot format price {value}: {exc}") from exc
    return f"{quantized:f}"


def round_price(value: Decimal, places: int = MAX_DECIMAL_PLACES) -> Decimal:
    return Decimal(format_price(value, places))
