"""
Application layer package - Hexagonal Architecture INSIDE Django.

This package contains:
- domain.py: Immutable ledger entities
- errors.py: Ledger error taxonomy
- ports.py: Interface definitions (protocols)
- use_cases.py: Trade execution and wallet operations
- portfolio.py, queries.py: Read paths
- adapters.py: Concrete implementations
- wiring.py: Dependency injection container

Usage:
    from trading.application.wiring import get_trade_executor

    executor = get_trade_executor()
    order = executor.execute_buy(user.id, "AAPL", 10, Decimal("50.00"))
"""

from .ports import (
    ClockPort,
    EventBusPort,
    LedgerStore,
    LedgerUnitOfWork,
    PriceLookup,
    PriceSourcePort,
)

from .errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    LedgerError,
    OrderNotFoundError,
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
    SymbolNotFoundError,
    ValidationError,
    WalletNotFoundError,
)

from .use_cases import TRADE_EXECUTED_TOPIC, TradeExecutor, WalletService
from .portfolio import PortfolioProjector
from .queries import OrderQuery
from .retry import RetryPolicy

from .adapters import (
    ChannelEventBus,
    DjangoLedgerStore,
    FixedClock,
    InMemoryEventBus,
    InMemoryLedgerStore,
    LoggingEventBus,
    RealClock,
    Subscription,
)

from .domain import Holding, Order, PortfolioPosition, PortfolioSummary, Side, Stock, Wallet


__all__ = [
    # Ports
    "ClockPort",
    "EventBusPort",
    "LedgerStore",
    "LedgerUnitOfWork",
    "PriceLookup",
    "PriceSourcePort",
    # Errors
    "InsufficientFundsError",
    "InsufficientHoldingsError",
    "LedgerError",
    "OrderNotFoundError",
    "StoreConflictError",
    "StoreError",
    "StoreUnavailableError",
    "SymbolNotFoundError",
    "ValidationError",
    "WalletNotFoundError",
    # Use Cases
    "TRADE_EXECUTED_TOPIC",
    "TradeExecutor",
    "WalletService",
    "PortfolioProjector",
    "OrderQuery",
    "RetryPolicy",
    # Adapters
    "ChannelEventBus",
    "DjangoLedgerStore",
    "FixedClock",
    "InMemoryEventBus",
    "InMemoryLedgerStore",
    "LoggingEventBus",
    "RealClock",
    "Subscription",
    # Domain
    "Holding",
    "Order",
    "PortfolioPosition",
    "PortfolioSummary",
    "Side",
    "Stock",
    "Wallet",
]
