"""
Portfolio projection: holdings valued at current prices.

Pure read path. Never mutates the ledger and takes no locks.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

from .domain import Holding, PortfolioPosition, PortfolioSummary, percent_of
from .ports import LedgerStore, PriceLookup


def _as_callable(price_lookup: PriceLookup, symbols: list[str]) -> Callable[[str], Optional[Decimal]]:
    if isinstance(price_lookup, Mapping):
        return price_lookup.get
    # Price sources that can batch (PriceSourcePort.many) are read once
    many = getattr(price_lookup, "many", None)
    if callable(many):
        return many(symbols).get
    return price_lookup


def project_holding(holding: Holding, current_price: Optional[Decimal]) -> PortfolioPosition:
    """
    Value one holding.

    Without a known price the holding is valued at its average price, so the
    unrealized P&L is zero and `has_live_price` is False.
    """
    has_live_price = current_price is not None
    price = Decimal(current_price) if has_live_price else holding.average_price

    market_value = price * holding.quantity
    cost_basis = holding.cost_basis
    unrealized_pl = market_value - cost_basis

    return PortfolioPosition(
        symbol=holding.symbol,
        name=holding.stock.name,
        quantity=holding.quantity,
        average_price=holding.average_price,
        current_price=price,
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pl=unrealized_pl,
        unrealized_pl_percent=percent_of(unrealized_pl, cost_basis),
        has_live_price=has_live_price,
    )


class PortfolioProjector:
    """Derives current holdings value and P&L from holdings + latest prices."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def get_portfolio(self, user_id: int, price_lookup: PriceLookup) -> list[PortfolioPosition]:
        holdings = sorted(self.store.list_holdings(user_id), key=lambda h: h.symbol)
        lookup = _as_callable(price_lookup, [h.symbol for h in holdings])
        return [project_holding(h, lookup(h.symbol)) for h in holdings]

    @staticmethod
    def summarize(positions: Iterable[PortfolioPosition]) -> PortfolioSummary:
        total_value = Decimal("0")
        total_investment = Decimal("0")
        for position in positions:
            total_value += position.market_value
            total_investment += position.cost_basis
        total_pl = total_value - total_investment
        return PortfolioSummary(
            total_value=total_value,
            total_investment=total_investment,
            total_unrealized_pl=total_pl,
            total_unrealized_pl_percent=percent_of(total_pl, total_investment),
        )
