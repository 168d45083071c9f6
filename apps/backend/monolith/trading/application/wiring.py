"""
Dependency injection container for assembling use cases with adapters.

This is the composition root where we wire together:
- Use cases (from use_cases.py, portfolio.py, queries.py)
- Adapters (from adapters.py)
- Configuration (from settings.LEDGER)

Stateful adapters (the event bus with its open channels) are singletons so
that every request in the process publishes to the same channels.
"""

from __future__ import annotations

from django.conf import settings

from .adapters import ChannelEventBus, DjangoLedgerStore, RealClock
from .portfolio import PortfolioProjector
from .queries import OrderQuery
from .retry import RetryPolicy
from .use_cases import TradeExecutor, WalletService


# Singleton cache for adapters shared across requests
_singletons: dict[str, object] = {}


def get_singleton(key: str, factory):
    """Get or create a singleton instance."""
    if key not in _singletons:
        _singletons[key] = factory()
    return _singletons[key]


def ledger_setting(name: str, default=None):
    return getattr(settings, "LEDGER", {}).get(name, default)


def conflict_retry_policy() -> RetryPolicy:
    """Executor policy: first attempt plus STORE_CONFLICT_RETRIES retries."""
    return RetryPolicy(
        max_attempts=1 + int(ledger_setting("STORE_CONFLICT_RETRIES", 2)),
        initial_delay_seconds=float(ledger_setting("STORE_CONFLICT_BACKOFF_SECONDS", 0.05)),
        backoff_multiplier=2.0,
        max_delay_seconds=1.0,
    )


def price_feed_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_settings(ledger_setting("PRICE_FEED_RETRY", {}))


def get_ledger_store() -> DjangoLedgerStore:
    return get_singleton("ledger_store", DjangoLedgerStore)


def get_event_bus() -> ChannelEventBus:
    return get_singleton("event_bus", ChannelEventBus)


def get_trade_executor() -> TradeExecutor:
    """
    Factory function to create TradeExecutor with all dependencies.

    Returns:
        Configured TradeExecutor instance
    """

    def factory():
        return TradeExecutor(
            store=get_ledger_store(),
            clock=RealClock(),
            bus=get_event_bus(),
            retry_policy=conflict_retry_policy(),
        )

    return get_singleton("trade_executor", factory)


def get_wallet_service() -> WalletService:
    return get_singleton("wallet_service", lambda: WalletService(get_ledger_store()))


def get_portfolio_projector() -> PortfolioProjector:
    return get_singleton("portfolio_projector", lambda: PortfolioProjector(get_ledger_store()))


def get_order_query() -> OrderQuery:
    return get_singleton("order_query", lambda: OrderQuery(get_ledger_store()))


def clear_singletons():
    """Clear the singleton cache (useful for testing)."""
    _singletons.clear()
