"""Shared pytest fixtures for the ledger test suite."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from trading.application.adapters import FixedClock, InMemoryEventBus, InMemoryLedgerStore
from trading.application.use_cases import TradeExecutor
from trading.application.wiring import clear_singletons

FIXED_NOW = datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_wiring():
    """Each test gets new singletons (event bus, store) and an empty price cache."""
    clear_singletons()
    cache.clear()
    yield
    clear_singletons()


@pytest.fixture
def memory_store():
    return InMemoryLedgerStore()


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def executor(memory_store, event_bus):
    return TradeExecutor(memory_store, FixedClock(FIXED_NOW), bus=event_bus)


@pytest.fixture
def funded_wallet(memory_store):
    """User 1 with 1000.00 in the in-memory store."""
    return memory_store.create_wallet(1, Decimal("1000.00"))


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="trader", password="password")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client
