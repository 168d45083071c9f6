"""
Concrete adapter implementations for application ports.

These adapters implement the ports defined in ports.py using:
- Django ORM for persistence (row locks inside transaction.atomic)
- Plain Python structures for an in-memory ledger (tests, scripting)
- Per-connection channels for events
- System clock for time

Hexagonal Architecture INSIDE Django:
- Adapters ARE allowed to use Django (ORM, settings, etc.)
- They implement the port interfaces
- Use cases depend on ports, not adapters
"""

from __future__ import annotations
import itertools
import logging
import queue
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Optional

from django.db import DataError, InterfaceError, OperationalError, transaction
from django.utils import timezone

from .domain import ORDER_STATUS_COMPLETED, Holding, Order, Side, Stock, Wallet
from .errors import (
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
    ValidationError,
    WalletNotFoundError,
)
from .ports import ClockPort, EventBusPort, LedgerStore

logger = logging.getLogger(__name__)


# ==========================================
# PERSISTENCE ADAPTERS (Django ORM)
# ==========================================

# SQLSTATE codes for serialization failure, deadlock and NOWAIT lock failure
CONFLICT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def classify_db_error(exc: Exception) -> StoreError:
    """Map a driver error onto the store error taxonomy."""
    cause = exc.__cause__ or exc
    pgcode = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if pgcode in CONFLICT_SQLSTATES:
        return StoreConflictError(f"Concurrent modification ({pgcode})")
    if "database is locked" in str(exc).lower():
        return StoreConflictError("Database is locked")
    return StoreUnavailableError(f"Ledger store unavailable: {exc}")


@contextmanager
def translate_db_errors() -> Iterator[None]:
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        error = classify_db_error(e)
        logger.warning(f"Database error mapped to {error.code}: {e}")
        raise error from e
    except DataError as e:
        # Numeric overflow on a ledger column
        logger.warning(f"Value out of storable range: {e}")
        raise ValidationError("Amount or quantity exceeds the ledger's storable range") from e


def _stock(m) -> Stock:
    return Stock(id=m.pk, symbol=m.symbol, name=m.name)


def _wallet(m) -> Wallet:
    return Wallet(user_id=m.user_id, balance=m.balance)


def _holding(m) -> Holding:
    return Holding(
        user_id=m.user_id,
        stock=_stock(m.stock),
        quantity=m.quantity,
        average_price=m.average_price,
    )


def _order(m) -> Order:
    return Order(
        id=m.pk,
        user_id=m.user_id,
        stock=_stock(m.stock),
        side=Side(m.side),
        quantity=m.quantity,
        price=m.price,
        total_amount=m.total_amount,
        status=m.status,
        created_at=m.created_at,
    )


class DjangoUnitOfWork:
    """Unit of work running inside an open `transaction.atomic()` block."""

    def __init__(self, models):
        self._Stock, self._Wallet, self._Holding, self._Order = models

    def find_stock(self, symbol: str) -> Optional[Stock]:
        m = self._Stock.objects.filter(symbol=symbol).first()
        return _stock(m) if m else None

    def get_or_create_stock(self, symbol: str) -> Stock:
        m, created = self._Stock.objects.get_or_create(symbol=symbol, defaults={"name": symbol})
        if created:
            logger.info(f"Created stock {symbol}")
        return _stock(m)

    def lock_wallet(self, user_id: int) -> Wallet:
        m = self._Wallet.objects.select_for_update().filter(user_id=user_id).first()
        if m is None:
            raise WalletNotFoundError()
        return _wallet(m)

    def update_wallet_balance(self, user_id: int, balance: Decimal) -> Wallet:
        self._Wallet.objects.filter(user_id=user_id).update(balance=balance, updated_at=timezone.now())
        return Wallet(user_id=user_id, balance=balance)

    def lock_holding(self, user_id: int, stock: Stock) -> Optional[Holding]:
        m = (
            self._Holding.objects.select_for_update()
            .select_related("stock")
            .filter(user_id=user_id, stock_id=stock.id)
            .first()
        )
        return _holding(m) if m else None

    def save_holding(self, user_id: int, stock: Stock, quantity: int, average_price: Decimal) -> Holding:
        self._Holding.objects.update_or_create(
            user_id=user_id,
            stock_id=stock.id,
            defaults={"quantity": quantity, "average_price": average_price},
        )
        return Holding(user_id=user_id, stock=stock, quantity=quantity, average_price=average_price)

    def delete_holding(self, user_id: int, stock: Stock) -> None:
        self._Holding.objects.filter(user_id=user_id, stock_id=stock.id).delete()

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
        m = self._Order.objects.create(
            user_id=user_id,
            stock_id=stock.id,
            side=side.value,
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            status=ORDER_STATUS_COMPLETED,
            created_at=created_at,
        )
        return Order(
            id=m.pk,
            user_id=user_id,
            stock=stock,
            side=side,
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            status=ORDER_STATUS_COMPLETED,
            created_at=created_at,
        )


class DjangoLedgerStore(LedgerStore):
    """
    Ledger store backed by Django ORM.

    Each unit of work is one `transaction.atomic()` block. Wallet and holding
    rows are locked with SELECT ... FOR UPDATE, so concurrent trades for the
    same user serialize on the wallet row (PostgreSQL, read committed).
    """

    def __init__(self):
        # Lazy import to avoid circular dependencies
        from trading.models import Holding as DjangoHolding
        from trading.models import Order as DjangoOrder
        from trading.models import Stock as DjangoStock
        from trading.models import Wallet as DjangoWallet

        self._models = (DjangoStock, DjangoWallet, DjangoHolding, DjangoOrder)
        self._Stock, self._Wallet, self._Holding, self._Order = self._models

    @contextmanager
    def unit_of_work(self, user_id: int) -> Iterator[DjangoUnitOfWork]:
        with translate_db_errors():
            with transaction.atomic():
                yield DjangoUnitOfWork(self._models)

    def get_wallet(self, user_id: int) -> Optional[Wallet]:
        with translate_db_errors():
            m = self._Wallet.objects.filter(user_id=user_id).first()
        return _wallet(m) if m else None

    def list_holdings(self, user_id: int) -> list[Holding]:
        with translate_db_errors():
            qs = self._Holding.objects.select_related("stock").filter(user_id=user_id).order_by("stock__symbol")
            return [_holding(m) for m in qs]

    def list_orders(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Order]:
        qs = self._Order.objects.select_related("stock").filter(user_id=user_id)
        if symbol:
            qs = qs.filter(stock__symbol=symbol)
        if side:
            qs = qs.filter(side=side.value)
        qs = qs.order_by("-created_at", "-id")
        qs = qs[offset : offset + limit] if limit is not None else qs[offset:]
        with translate_db_errors():
            return [_order(m) for m in qs]

    def get_order(self, user_id: int, order_id: int) -> Optional[Order]:
        with translate_db_errors():
            m = self._Order.objects.select_related("stock").filter(user_id=user_id, pk=order_id).first()
        return _order(m) if m else None

    def list_stocks(self) -> list[Stock]:
        with translate_db_errors():
            return [_stock(m) for m in self._Stock.objects.order_by("symbol")]


# ==========================================
# PERSISTENCE ADAPTERS (in-memory)
# ==========================================


class InMemoryUnitOfWork:
    """
    Works on a private copy of one user's wallet and holdings.

    Nothing is visible to other readers until the store publishes the copy
    on commit; dropping the copy is the rollback.
    """

    def __init__(self, store: "InMemoryLedgerStore", user_id: int):
        self._store = store
        self.user_id = user_id
        self.wallet: Optional[Wallet] = store._wallets.get(user_id)
        self.holdings: dict[str, Holding] = dict(store._holdings.get(user_id, {}))
        self.orders: list[Order] = []
        self.created_stocks: list[Stock] = []
        self.used_stocks: dict[str, Stock] = {}

    def _check_user(self, user_id: int) -> None:
        if user_id != self.user_id:
            raise ValueError(f"Unit of work is bound to user {self.user_id}, not {user_id}")

    def find_stock(self, symbol: str) -> Optional[Stock]:
        stock = self._store.find_stock(symbol)
        if stock is not None:
            self.used_stocks[symbol] = stock
        return stock

    def get_or_create_stock(self, symbol: str) -> Stock:
        stock, created = self._store._get_or_create_stock(symbol)
        if created:
            self.created_stocks.append(stock)
        self.used_stocks[symbol] = stock
        return stock

    def lock_wallet(self, user_id: int) -> Wallet:
        self._check_user(user_id)
        if self.wallet is None:
            raise WalletNotFoundError()
        return self.wallet

    def update_wallet_balance(self, user_id: int, balance: Decimal) -> Wallet:
        self._check_user(user_id)
        if balance < 0:
            raise ValueError("Wallet balance must not become negative")
        self.wallet = Wallet(user_id=user_id, balance=balance)
        return self.wallet

    def lock_holding(self, user_id: int, stock: Stock) -> Optional[Holding]:
        self._check_user(user_id)
        return self.holdings.get(stock.symbol)

    def save_holding(self, user_id: int, stock: Stock, quantity: int, average_price: Decimal) -> Holding:
        self._check_user(user_id)
        if quantity <= 0:
            raise ValueError("Holding quantity must be positive")
        holding = Holding(user_id=user_id, stock=stock, quantity=quantity, average_price=average_price)
        self.holdings[stock.symbol] = holding
        return holding

    def delete_holding(self, user_id: int, stock: Stock) -> None:
        self._check_user(user_id)
        self.holdings.pop(stock.symbol, None)

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
        self._check_user(user_id)
        order = Order(
            id=self._store._next_order_id(),
            user_id=user_id,
            stock=stock,
            side=side,
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            status=ORDER_STATUS_COMPLETED,
            created_at=created_at,
        )
        self.orders.append(order)
        return order


class InMemoryLedgerStore(LedgerStore):
    """
    Thread-safe in-memory ledger.

    Units of work for the same user are serialized by a per-user lock held
    for the whole unit. Commit swaps the user's state in under the store
    lock, so readers see either the state before or after a trade.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._user_locks: dict[int, threading.Lock] = {}
        self._stocks: dict[str, Stock] = {}
        self._wallets: dict[int, Wallet] = {}
        self._holdings: dict[int, dict[str, Holding]] = {}
        self._orders: list[Order] = []
        self._stock_ids = itertools.count(1)
        self._order_ids = itertools.count(1)

    # Seeding helpers

    def create_wallet(self, user_id: int, balance: Decimal = Decimal("0")) -> Wallet:
        with self._lock:
            wallet = Wallet(user_id=user_id, balance=Decimal(balance))
            self._wallets[user_id] = wallet
            return wallet

    def add_stock(self, symbol: str, name: Optional[str] = None) -> Stock:
        stock, _ = self._get_or_create_stock(symbol, name)
        return stock

    # Internals used by InMemoryUnitOfWork

    def _user_lock(self, user_id: int) -> threading.Lock:
        with self._lock:
            return self._user_locks.setdefault(user_id, threading.Lock())

    def _get_or_create_stock(self, symbol: str, name: Optional[str] = None) -> tuple[Stock, bool]:
        with self._lock:
            stock = self._stocks.get(symbol)
            if stock is not None:
                return stock, False
            stock = Stock(id=next(self._stock_ids), symbol=symbol, name=name or symbol)
            self._stocks[symbol] = stock
            return stock, True

    def _next_order_id(self) -> int:
        with self._lock:
            return next(self._order_ids)

    def _is_referenced(self, stock: Stock) -> bool:
        if any(o.stock.id == stock.id for o in self._orders):
            return True
        return any(stock.symbol in holdings for holdings in self._holdings.values())

    def _commit(self, uow: InMemoryUnitOfWork) -> None:
        with self._lock:
            for symbol, stock in uow.used_stocks.items():
                self._stocks.setdefault(symbol, stock)
            if uow.wallet is not None:
                self._wallets[uow.user_id] = uow.wallet
            self._holdings[uow.user_id] = uow.holdings
            self._orders.extend(uow.orders)

    def _rollback(self, uow: InMemoryUnitOfWork) -> None:
        with self._lock:
            for stock in uow.created_stocks:
                if not self._is_referenced(stock) and self._stocks.get(stock.symbol) == stock:
                    del self._stocks[stock.symbol]

    @contextmanager
    def unit_of_work(self, user_id: int) -> Iterator[InMemoryUnitOfWork]:
        with self._user_lock(user_id):
            uow = InMemoryUnitOfWork(self, user_id)
            try:
                yield uow
            except BaseException:
                self._rollback(uow)
                raise
            self._commit(uow)

    # Read side

    def find_stock(self, symbol: str) -> Optional[Stock]:
        with self._lock:
            return self._stocks.get(symbol)

    def get_wallet(self, user_id: int) -> Optional[Wallet]:
        with self._lock:
            return self._wallets.get(user_id)

    def list_holdings(self, user_id: int) -> list[Holding]:
        with self._lock:
            holdings = list(self._holdings.get(user_id, {}).values())
        return sorted(holdings, key=lambda h: h.symbol)

    def list_orders(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Order]:
        with self._lock:
            orders = [o for o in self._orders if o.user_id == user_id]
        if symbol:
            orders = [o for o in orders if o.symbol == symbol]
        if side:
            orders = [o for o in orders if o.side is side]
        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        end = offset + limit if limit is not None else None
        return orders[offset:end]

    def get_order(self, user_id: int, order_id: int) -> Optional[Order]:
        with self._lock:
            for order in self._orders:
                if order.id == order_id and order.user_id == user_id:
                    return order
        return None

    def list_stocks(self) -> list[Stock]:
        with self._lock:
            return sorted(self._stocks.values(), key=lambda s: s.symbol)

    def snapshot(self, user_id: int) -> tuple:
        """Committed (wallet, holdings, orders) of one user, for comparisons."""
        with self._lock:
            return (
                self._wallets.get(user_id),
                dict(self._holdings.get(user_id, {})),
                tuple(o for o in self._orders if o.user_id == user_id),
            )


# ==========================================
# EVENT BUS ADAPTERS
# ==========================================


class LoggingEventBus(EventBusPort):
    """
    Event bus that logs events to the "trading.events" logger.

    Useful for debugging and development.
    """

    def __init__(self):
        self.logger = logging.getLogger("trading.events")

    def publish(self, topic: str, payload: dict) -> None:
        """Log the event."""
        self.logger.info(f"Event published: {topic} - {payload}")


class InMemoryEventBus(EventBusPort):
    """
    In-memory event bus for testing.

    Stores events in a list for later inspection.
    """

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def publish(self, topic: str, payload: dict) -> None:
        """Store the event in memory."""
        self.events.append((topic, payload))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]

    def clear(self) -> None:
        """Clear all stored events."""
        self.events.clear()


class Subscription:
    """
    One consumer's channel on a ChannelEventBus.

    Events are buffered in a bounded queue. When the consumer falls behind,
    the oldest buffered event is dropped and counted in `dropped`.
    Use as a context manager so the channel is always closed.
    """

    _CLOSED = object()

    def __init__(
        self,
        bus: "ChannelEventBus",
        topics: Optional[Iterable[str]] = None,
        predicate: Optional[Callable[[str, dict], bool]] = None,
        maxsize: int = 100,
    ):
        self._bus = bus
        self.topics = frozenset(topics) if topics else None
        self.predicate = predicate
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self.closed = False
        self.dropped = 0

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def wants(self, topic: str, payload: dict) -> bool:
        if self.topics is not None and topic not in self.topics:
            return False
        return self.predicate is None or self.predicate(topic, payload)

    def _put_evicting(self, item) -> bool:
        """Enqueue `item`, evicting the oldest entry if full. Caller holds the lock."""
        try:
            self._queue.put_nowait(item)
            return False
        except queue.Full:
            evicted = True
            try:
                self._queue.get_nowait()
            except queue.Empty:
                # A consumer drained the channel in between
                evicted = False
            self._queue.put_nowait(item)
            return evicted

    def offer(self, topic: str, payload: dict) -> None:
        with self._lock:
            if self.closed:
                return
            if self._put_evicting((topic, payload)):
                self.dropped += 1

    def get(self, timeout: Optional[float] = None) -> Optional[tuple[str, dict]]:
        """Next (topic, payload), or None on timeout or once closed."""
        if self.closed and self._queue.empty():
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is self._CLOSED:
            return None
        return item

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
            # Wake up a consumer blocked in get()
            self._put_evicting(self._CLOSED)
        self._bus._remove(self)


class ChannelEventBus(LoggingEventBus):
    """
    Publish/subscribe bus with one explicit channel per consumer.

    Consumers open a channel for the lifetime of a request and close it when
    done. Publishing logs the event and delivers it to the channels open at
    that moment; there is no replay for late subscribers.
    """

    def __init__(self, channel_size: int = 100):
        super().__init__()
        self.channel_size = channel_size
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def open_channel(
        self,
        topics: Optional[Iterable[str]] = None,
        predicate: Optional[Callable[[str, dict], bool]] = None,
    ) -> Subscription:
        subscription = Subscription(self, topics=topics, predicate=predicate, maxsize=self.channel_size)
        with self._lock:
            self._subscriptions.append(subscription)
        self.logger.debug(f"Channel opened ({self.subscriber_count} open)")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        self.logger.debug(f"Channel closed ({self.subscriber_count} open)")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, topic: str, payload: dict) -> None:
        super().publish(topic, payload)
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            try:
                if subscription.wants(topic, payload):
                    subscription.offer(topic, payload)
            except Exception as e:
                self.logger.error(f"Delivery of {topic} to a channel failed: {e}", exc_info=True)


# ==========================================
# TIME ADAPTERS
# ==========================================


class RealClock(ClockPort):
    """Real clock using Django's timezone-aware datetime."""

    def now(self) -> datetime:
        """Return current timezone-aware datetime."""
        return timezone.now()


class FixedClock(ClockPort):
    """Fixed clock for testing (always returns the same time)."""

    def __init__(self, fixed_time: datetime):
        self._fixed = fixed_time

    def now(self) -> datetime:
        """Return the fixed datetime."""
        return self._fixed


class SteppingClock(ClockPort):
    """Test clock that advances by `step` on every call."""

    def __init__(self, start: datetime, step):
        self._current = start
        self._step = step
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._current
            self._current = current + self._step
            return current
