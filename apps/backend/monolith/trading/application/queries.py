"""Read-side queries over committed orders."""

from __future__ import annotations
from typing import Optional

from .domain import Order, Side, normalize_symbol
from .errors import OrderNotFoundError, ValidationError
from .ports import LedgerStore


class OrderQuery:
    """
    Lists a user's orders, newest first.

    Only committed orders are visible: the store never exposes the writes of
    an open unit of work.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def list_orders(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        side: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Order]:
        side_filter = None
        if side:
            try:
                side_filter = Side(side.upper())
            except ValueError:
                raise ValidationError("side must be BUY or SELL")
        if limit is not None and limit < 0:
            raise ValidationError("limit must not be negative")
        if offset < 0:
            raise ValidationError("offset must not be negative")

        return self.store.list_orders(
            user_id,
            symbol=normalize_symbol(symbol) or None,
            side=side_filter,
            limit=limit,
            offset=offset,
        )

    def list_trades(self, user_id: int, limit: Optional[int] = None) -> list[Order]:
        """Transaction log view of the same orders."""
        return self.list_orders(user_id, limit=limit)

    def get_order(self, user_id: int, order_id: int) -> Order:
        order = self.store.get_order(user_id, order_id)
        if order is None:
            raise OrderNotFoundError()
        return order
