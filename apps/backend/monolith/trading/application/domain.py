"""
Ledger domain entities.

These are immutable value objects used by the application layer. They are
framework-agnostic: the Django models in trading/models/ are mapped onto them
by the store adapters.

Note: every monetary and quantity value is a Decimal (or int for share
quantities). Binary floats are rejected at the edges.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Optional


# Average prices are stored with 10 decimal places by every store adapter.
PRICE_QUANT = Decimal("0.0000000001")

ORDER_STATUS_COMPLETED = "completed"


class Side(str, Enum):
    """Order side."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Stock:
    """Tradable symbol (reference data, append-only)."""

    id: int
    symbol: str
    name: str


@dataclass(frozen=True)
class Wallet:
    """Cash balance of one user."""

    user_id: int
    balance: Decimal


@dataclass(frozen=True)
class Holding:
    """Shares of one stock owned by one user. Never exists with quantity <= 0."""

    user_id: int
    stock: Stock
    quantity: int
    average_price: Decimal

    @property
    def symbol(self) -> str:
        return self.stock.symbol

    @property
    def cost_basis(self) -> Decimal:
        return self.average_price * self.quantity


@dataclass(frozen=True)
class Order:
    """Executed trade. Created once per accepted request, never mutated."""

    id: int
    user_id: int
    stock: Stock
    side: Side
    quantity: int
    price: Decimal
    total_amount: Decimal
    status: str
    created_at: datetime

    @property
    def symbol(self) -> str:
        return self.stock.symbol

    def to_event_payload(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "price": str(self.price),
            "total_amount": str(self.total_amount),
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PortfolioPosition:
    """Holding valued at the current price."""

    symbol: str
    name: str
    quantity: int
    average_price: Decimal
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    has_live_price: bool


@dataclass(frozen=True)
class PortfolioSummary:
    """Totals across all positions of a portfolio."""

    total_value: Decimal
    total_investment: Decimal
    total_unrealized_pl: Decimal
    total_unrealized_pl_percent: Decimal


def normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").strip().upper()


def weighted_average_price(
    old_quantity: int,
    old_average: Decimal,
    added_quantity: int,
    added_cost: Decimal,
) -> Decimal:
    """
    Volume-weighted average after buying `added_quantity` shares for `added_cost`.

    Returns the value quantized to PRICE_QUANT so every store persists
    exactly the same number.
    """
    new_quantity = old_quantity + added_quantity
    total_cost = (old_average * old_quantity) + added_cost
    return (total_cost / Decimal(new_quantity)).quantize(PRICE_QUANT, rounding=ROUND_HALF_EVEN)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """`part` as a percentage of `whole`; 0 when `whole` is 0."""
    if whole == 0:
        return Decimal("0")
    return (part / whole) * Decimal("100")
