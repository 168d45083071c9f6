from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trading.application import (
    InMemoryLedgerStore,
    OrderNotFoundError,
    OrderQuery,
    Side,
    TradeExecutor,
    ValidationError,
)
from trading.application.adapters import SteppingClock


@pytest.fixture
def store():
    store = InMemoryLedgerStore()
    store.create_wallet(1, Decimal("10000"))
    store.create_wallet(2, Decimal("10000"))
    clock = SteppingClock(datetime(2024, 1, 1, tzinfo=timezone.utc), timedelta(minutes=1))
    executor = TradeExecutor(store, clock)
    executor.execute_buy(1, "AAPL", 10, Decimal("50"))
    executor.execute_buy(1, "MSFT", 5, Decimal("100"))
    executor.execute_sell(1, "AAPL", 3, Decimal("55"))
    executor.execute_buy(2, "AAPL", 1, Decimal("50"))
    return store


@pytest.fixture
def query(store):
    return OrderQuery(store)


def test_newest_first(query):
    orders = query.list_orders(1)
    assert [(o.side, o.symbol) for o in orders] == [
        (Side.SELL, "AAPL"),
        (Side.BUY, "MSFT"),
        (Side.BUY, "AAPL"),
    ]


def test_only_own_orders(query):
    assert len(query.list_orders(2)) == 1
    assert query.list_orders(3) == []


def test_filters(query):
    assert [o.side for o in query.list_orders(1, symbol="aapl")] == [Side.SELL, Side.BUY]
    assert [o.symbol for o in query.list_orders(1, side="buy")] == ["MSFT", "AAPL"]
    assert len(query.list_orders(1, symbol="AAPL", side="SELL")) == 1


def test_limit_and_offset(query):
    assert [o.symbol for o in query.list_orders(1, limit=1, offset=1)] == ["MSFT"]
    assert query.list_orders(1, offset=10) == []


@pytest.mark.parametrize("kwargs", [{"side": "HOLD"}, {"limit": -1}, {"offset": -1}])
def test_invalid_filters(query, kwargs):
    with pytest.raises(ValidationError):
        query.list_orders(1, **kwargs)


def test_list_trades_is_limited(query):
    assert len(query.list_trades(1, limit=2)) == 2


def test_get_order(query):
    newest = query.list_orders(1)[0]
    assert query.get_order(1, newest.id) == newest


def test_get_order_of_another_user_is_not_found(query):
    other = query.list_orders(2)[0]
    with pytest.raises(OrderNotFoundError):
        query.get_order(1, other.id)
