"""
Concurrent trades against one wallet.

The in-memory test always runs. The PostgreSQL variant needs real row locks
and is skipped on SQLite.
"""

import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from django.db import connection

from trading.application import InsufficientFundsError, TradeExecutor
from trading.application.adapters import DjangoLedgerStore, FixedClock, InMemoryLedgerStore

NOW = datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


def _race(executor, user_id, symbol, quantity, price, workers=2, on_exit=None):
    """Run `workers` identical buys released by one barrier. Returns (orders, errors)."""
    barrier = threading.Barrier(workers)
    orders, errors = [], []
    lock = threading.Lock()

    def worker():
        try:
            barrier.wait()
            order = executor.execute_buy(user_id, symbol, quantity, price)
            with lock:
                orders.append(order)
        except Exception as e:
            with lock:
                errors.append(e)
        finally:
            if on_exit:
                on_exit()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return orders, errors


def test_two_buys_against_one_and_a_half_costs_in_memory():
    store = InMemoryLedgerStore()
    store.create_wallet(1, Decimal("150.00"))
    executor = TradeExecutor(store, FixedClock(NOW))

    orders, errors = _race(executor, 1, "AAPL", 1, Decimal("100.00"))

    assert len(orders) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], InsufficientFundsError)
    assert store.get_wallet(1).balance == Decimal("50.00")
    assert [h.quantity for h in store.list_holdings(1)] == [1]
    assert len(store.list_orders(1)) == 1


def test_many_small_buys_never_overdraw_in_memory():
    store = InMemoryLedgerStore()
    store.create_wallet(1, Decimal("10.00"))
    executor = TradeExecutor(store, FixedClock(NOW))

    orders, errors = _race(executor, 1, "AAPL", 1, Decimal("3.00"), workers=8)

    assert len(orders) == 3
    assert len(errors) == 5
    assert all(isinstance(e, InsufficientFundsError) for e in errors)
    assert store.get_wallet(1).balance == Decimal("1.00")
    assert store.list_holdings(1)[0].quantity == 3


@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
def test_two_buys_against_one_and_a_half_costs_postgres(django_user_model):
    if connection.vendor != "postgresql":
        pytest.skip("row-level locking needs PostgreSQL")

    from trading.models import Stock, Wallet

    user = django_user_model.objects.create_user(username="racer", password="password")
    Wallet.objects.filter(user=user).update(balance=Decimal("150.00"))
    # Both threads must contend on the wallet row, not on creating the stock
    Stock.objects.create(symbol="AAPL", name="Apple Inc.")

    store = DjangoLedgerStore()
    executor = TradeExecutor(store, FixedClock(NOW))

    orders, errors = _race(executor, user.id, "AAPL", 1, Decimal("100.00"), on_exit=connection.close)

    assert len(orders) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], InsufficientFundsError)
    assert store.get_wallet(user.id).balance == Decimal("50.00")
    assert store.list_holdings(user.id)[0].quantity == 1
