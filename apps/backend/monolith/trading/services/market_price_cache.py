"""
Latest known price per symbol, kept in the Django cache.

The price feed writes here; the portfolio view and the market endpoint read
from here. Nothing in the ledger write path depends on it: trades carry
their own reference price.
"""

from decimal import Decimal
from typing import Iterable, Optional, TypedDict

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone


class CachedPrice(TypedDict):
    price: Decimal
    timestamp: int


DEFAULT_TIMEOUT_SECONDS = 300


def _cache_key(symbol: str) -> str:
    return f"market_price:{symbol.strip().upper()}"


def _timeout() -> int:
    return getattr(settings, "LEDGER", {}).get("PRICE_CACHE_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)


def set_cached_price(symbol: str, price: Decimal, timestamp: Optional[int] = None) -> CachedPrice:
    if not isinstance(price, Decimal) or not price.is_finite() or price <= 0:
        raise ValueError(f"Invalid price for {symbol}: {price!r}")
    payload: CachedPrice = {
        "price": price,
        "timestamp": timestamp if timestamp is not None else int(timezone.now().timestamp()),
    }
    cache.set(_cache_key(symbol), payload, timeout=_timeout())
    return payload


def get_cached_quote(symbol: str) -> Optional[CachedPrice]:
    return cache.get(_cache_key(symbol))


def get_cached_price(symbol: str) -> Optional[Decimal]:
    cached = get_cached_quote(symbol)
    return cached["price"] if cached else None


def get_cached_prices(symbols: Iterable[str]) -> dict[str, Decimal]:
    """{SYMBOL: price} for the symbols that have a cached price."""
    keys = {_cache_key(s): s.strip().upper() for s in symbols}
    found = cache.get_many(list(keys))
    return {keys[key]: payload["price"] for key, payload in found.items()}


def clear_cached_price(symbol: str) -> None:
    cache.delete(_cache_key(symbol))


class CachePriceLookup:
    """
    Price lookup backed by the cache, usable wherever a `price_lookup`
    callable is accepted. `many()` reads a batch with one cache round trip.
    """

    def __call__(self, symbol: str) -> Optional[Decimal]:
        return get_cached_price(symbol)

    def many(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        return get_cached_prices(symbols)
