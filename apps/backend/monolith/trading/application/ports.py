"""
Application layer ports (interfaces) for the ledger.

Hexagonal Architecture INSIDE Django:
- These ports define the interfaces that adapters must implement
- Use cases depend on ports only
- Concrete implementations are in adapters.py
"""

from __future__ import annotations
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional, Protocol, Union

from .domain import Holding, Order, Side, Stock, Wallet


class LedgerUnitOfWork(Protocol):
    """
    Reads and writes performed inside one atomic unit.

    Every `lock_*` call must keep the returned row protected from concurrent
    writers until the unit of work ends.
    """

    def find_stock(self, symbol: str) -> Optional[Stock]:
        ...

    def get_or_create_stock(self, symbol: str) -> Stock:
        ...

    def lock_wallet(self, user_id: int) -> Wallet:
        """Return the wallet, locked. Raises WalletNotFoundError."""
        ...

    def update_wallet_balance(self, user_id: int, balance: Decimal) -> Wallet:
        ...

    def lock_holding(self, user_id: int, stock: Stock) -> Optional[Holding]:
        ...

    def save_holding(self, user_id: int, stock: Stock, quantity: int, average_price: Decimal) -> Holding:
        ...

    def delete_holding(self, user_id: int, stock: Stock) -> None:
        ...

    def insert_order(
        self,
        user_id: int,
        stock: Stock,
        side: Side,
        quantity: int,
        price: Decimal,
        total_amount: Decimal,
        created_at: datetime,
    ) -> Order:
        ...


class LedgerStore(Protocol):
    """
    Port for durable, transactional ledger storage.

    `unit_of_work()` commits when the block exits normally and rolls back
    every mutation when it exits with an exception. Store-level failures
    surface as StoreConflictError or StoreUnavailableError.
    """

    def unit_of_work(self, user_id: int) -> AbstractContextManager[LedgerUnitOfWork]:
        ...

    def get_wallet(self, user_id: int) -> Optional[Wallet]:
        ...

    def list_holdings(self, user_id: int) -> list[Holding]:
        ...

    def list_orders(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Order]:
        """Committed orders, newest first."""
        ...

    def get_order(self, user_id: int, order_id: int) -> Optional[Order]:
        ...

    def list_stocks(self) -> list[Stock]:
        ...


class EventBusPort(Protocol):
    """Port for publishing domain events."""

    def publish(self, topic: str, payload: dict) -> None:
        """Publish an event to the specified topic."""
        ...


class ClockPort(Protocol):
    """Port for time operations (enables testing with fixed time)."""

    def now(self) -> datetime:
        """Get the current datetime."""
        ...


class PriceSourcePort(Protocol):
    """Port for reading the latest known prices."""

    def __call__(self, symbol: str) -> Optional[Decimal]:
        ...

    def many(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        ...


# What PortfolioProjector.get_portfolio accepts as its price input.
PriceLookup = Union[Mapping[str, Decimal], Callable[[str], Optional[Decimal]], PriceSourcePort]
