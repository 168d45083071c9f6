"""
Application layer use cases for the ledger.

Use cases implement business logic and orchestrate domain entities and the
ledger store through ports.

Hexagonal Architecture INSIDE Django:
- Use cases are framework-agnostic (no Django-specific code here)
- Dependencies are injected via ports
- Django adapters implement these ports
"""

from __future__ import annotations
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from .domain import (
    Order,
    Side,
    Wallet,
    normalize_symbol,
    weighted_average_price,
)
from .errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    StoreConflictError,
    SymbolNotFoundError,
    ValidationError,
    WalletNotFoundError,
)
from .ports import ClockPort, EventBusPort, LedgerStore, LedgerUnitOfWork
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

TRADE_EXECUTED_TOPIC = "trade.executed"


def validate_quantity(quantity) -> int:
    # bool is an int subclass; True must not buy one share
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number of shares")
    if quantity <= 0:
        raise ValidationError("Quantity must be positive")
    return quantity


def validate_amount(value, field: str = "Price") -> Decimal:
    """Coerce `value` to a positive finite Decimal. Floats are refused."""
    if isinstance(value, (bool, float)):
        raise ValidationError(f"{field} must be an exact decimal, not {type(value).__name__}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} is required")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be positive")
    return amount


def validate_symbol(symbol) -> str:
    if not isinstance(symbol, str) or not normalize_symbol(symbol):
        raise ValidationError("Symbol is required")
    return normalize_symbol(symbol)


class TradeExecutor:
    """
    Validates and atomically applies a single BUY or SELL against the ledger.

    Each call runs one unit of work on the LedgerStore: either the wallet,
    the holding and the new order are all committed, or none of them is.
    Preconditions are checked before the unit of work opens, so a rejected
    request never touches the store.

    Store conflicts (concurrent modification) retry the whole
    validate-and-mutate sequence with fresh reads, bounded by `retry_policy`.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: ClockPort,
        bus: Optional[EventBusPort] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.store = store
        self.clock = clock
        self.bus = bus
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=3)
        self._sleep = sleep

    def execute_buy(self, user_id: int, symbol: str, quantity: int, price) -> Order:
        """
        Buy `quantity` shares of `symbol` at `price`.

        Raises:
            ValidationError: bad input, nothing touched
            InsufficientFundsError: balance below quantity * price
            StoreConflictError: conflict persisted after all retries
            StoreUnavailableError: store failure, not retried
        """
        symbol, quantity, price = self._validate(symbol, quantity, price)
        order = self._run(lambda: self._buy(user_id, symbol, quantity, price), f"BUY {quantity} {symbol}")
        self._announce(order)
        return order

    def execute_sell(self, user_id: int, symbol: str, quantity: int, price) -> Order:
        """
        Sell `quantity` shares of `symbol` at `price`.

        Raises:
            ValidationError: bad input, nothing touched
            SymbolNotFoundError: symbol never traded
            InsufficientHoldingsError: fewer shares held than requested
            StoreConflictError: conflict persisted after all retries
            StoreUnavailableError: store failure, not retried
        """
        symbol, quantity, price = self._validate(symbol, quantity, price)
        order = self._run(lambda: self._sell(user_id, symbol, quantity, price), f"SELL {quantity} {symbol}")
        self._announce(order)
        return order

    def execute(self, user_id: int, side: str, symbol: str, quantity: int, price) -> Order:
        """Dispatch on side ("BUY" or "SELL")."""
        try:
            side = Side(str(side).upper())
        except ValueError:
            raise ValidationError("Side must be BUY or SELL")
        if side is Side.BUY:
            return self.execute_buy(user_id, symbol, quantity, price)
        return self.execute_sell(user_id, symbol, quantity, price)

    # ------------------------------------------------------------------

    @staticmethod
    def _validate(symbol, quantity, price) -> tuple[str, int, Decimal]:
        return validate_symbol(symbol), validate_quantity(quantity), validate_amount(price)

    def _run(self, attempt: Callable[[], Order], label: str) -> Order:
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return self.retry_policy.run(attempt, retry_on=(StoreConflictError,), label=label, **kwargs)

    def _buy(self, user_id: int, symbol: str, quantity: int, price: Decimal) -> Order:
        total_cost = price * quantity
        with self.store.unit_of_work(user_id) as uow:
            stock = uow.get_or_create_stock(symbol)
            wallet = uow.lock_wallet(user_id)
            if wallet.balance < total_cost:
                raise InsufficientFundsError(required=total_cost, available=wallet.balance)

            uow.update_wallet_balance(user_id, wallet.balance - total_cost)
            order = self._record(uow, user_id, stock, Side.BUY, quantity, price, total_cost)

            holding = uow.lock_holding(user_id, stock)
            if holding is None:
                uow.save_holding(user_id, stock, quantity, price)
            else:
                average = weighted_average_price(holding.quantity, holding.average_price, quantity, total_cost)
                uow.save_holding(user_id, stock, holding.quantity + quantity, average)
        return order

    def _sell(self, user_id: int, symbol: str, quantity: int, price: Decimal) -> Order:
        proceeds = price * quantity
        with self.store.unit_of_work(user_id) as uow:
            stock = uow.find_stock(symbol)
            if stock is None:
                raise SymbolNotFoundError(symbol)

            # Lock order: wallet, then holding (same as BUY).
            wallet = uow.lock_wallet(user_id)
            holding = uow.lock_holding(user_id, stock)
            if holding is None or holding.quantity < quantity:
                raise InsufficientHoldingsError(
                    symbol=symbol,
                    requested=quantity,
                    held=holding.quantity if holding else 0,
                )

            uow.update_wallet_balance(user_id, wallet.balance + proceeds)
            order = self._record(uow, user_id, stock, Side.SELL, quantity, price, proceeds)

            remaining = holding.quantity - quantity
            if remaining == 0:
                uow.delete_holding(user_id, stock)
            else:
                uow.save_holding(user_id, stock, remaining, holding.average_price)
        return order

    def _record(self, uow: LedgerUnitOfWork, user_id, stock, side, quantity, price, total) -> Order:
        return uow.insert_order(
            user_id=user_id,
            stock=stock,
            side=side,
            quantity=quantity,
            price=price,
            total_amount=total,
            created_at=self.clock.now(),
        )

    def _announce(self, order: Order) -> None:
        logger.info(
            f"Order {order.id} {order.status}: user={order.user_id} {order.side.value} "
            f"{order.quantity} {order.symbol} @ {order.price} (total {order.total_amount})"
        )
        if self.bus is not None:
            self.bus.publish(TRADE_EXECUTED_TOPIC, order.to_event_payload())


class WalletService:
    """
    Wallet reads plus deposit / withdraw.

    Deposits and withdrawals lock the wallet through the same unit of work
    as trades, so they serialize with concurrent BUY/SELL requests.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def get_wallet(self, user_id: int) -> Wallet:
        wallet = self.store.get_wallet(user_id)
        if wallet is None:
            raise WalletNotFoundError()
        return wallet

    def deposit(self, user_id: int, amount) -> Wallet:
        amount = validate_amount(amount, field="Amount")
        with self.store.unit_of_work(user_id) as uow:
            wallet = uow.lock_wallet(user_id)
            wallet = uow.update_wallet_balance(user_id, wallet.balance + amount)
        logger.info(f"Deposit of {amount} for user {user_id}; balance {wallet.balance}")
        return wallet

    def withdraw(self, user_id: int, amount) -> Wallet:
        amount = validate_amount(amount, field="Amount")
        with self.store.unit_of_work(user_id) as uow:
            wallet = uow.lock_wallet(user_id)
            if wallet.balance < amount:
                raise InsufficientFundsError(required=amount, available=wallet.balance)
            wallet = uow.update_wallet_balance(user_id, wallet.balance - amount)
        logger.info(f"Withdrawal of {amount} for user {user_id}; balance {wallet.balance}")
        return wallet


__all__ = [
    "TRADE_EXECUTED_TOPIC",
    "TradeExecutor",
    "WalletService",
    "validate_amount",
    "validate_quantity",
    "validate_symbol",
]
