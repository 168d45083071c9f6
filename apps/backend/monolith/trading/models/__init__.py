# trading/models/__init__.py
"""
Import all models so `from trading.models import Wallet` keeps working.
"""

from .base import TimestampMixin
from .fields import ExactDecimalField
from .ledger import (
    Holding,
    ImmutableRecordError,
    Order,
    Stock,
    Wallet,
)

__all__ = [
    "TimestampMixin",
    "ExactDecimalField",
    "Stock",
    "Wallet",
    "Holding",
    "Order",
    "ImmutableRecordError",
]
