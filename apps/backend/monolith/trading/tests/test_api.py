"""
Integration tests for the ledger REST API.

Run with: pytest apps/backend/monolith/trading/tests/test_api.py -v
"""

from decimal import Decimal
from unittest import mock

import pytest
from rest_framework.test import APIClient

from trading.application import StoreConflictError, StoreUnavailableError
from trading.models import Stock, Wallet
from trading.services.market_price_cache import set_cached_price

pytestmark = pytest.mark.django_db


@pytest.fixture
def funded(user):
    Wallet.objects.filter(user=user).update(balance=Decimal("1000.00"))
    return user


def buy(client, symbol="AAPL", quantity=10, price="50.00"):
    return client.post("/api/trades/buy/", {"symbol": symbol, "quantity": quantity, "price": price}, format="json")


def sell(client, symbol="AAPL", quantity=4, price="60.00"):
    return client.post("/api/trades/sell/", {"symbol": symbol, "quantity": quantity, "price": price}, format="json")


class TestTrades:
    def test_buy_returns_created_order(self, api_client, funded):
        response = buy(api_client, symbol="aapl")

        assert response.status_code == 201
        assert response.data["message"] == "Stock purchased successfully"
        order = response.data["order"]
        assert order["symbol"] == "AAPL"
        assert order["side"] == "BUY"
        assert order["quantity"] == 10
        assert Decimal(order["total_amount"]) == Decimal("500.00")
        assert order["status"] == "completed"
        assert Decimal(api_client.get("/api/wallet/").data["wallet"]["balance"]) == Decimal("500.00")

    def test_buy_then_sell(self, api_client, funded):
        buy(api_client)
        response = sell(api_client)

        assert response.status_code == 201
        assert response.data["message"] == "Stock sold successfully"
        assert Decimal(api_client.get("/api/wallet/").data["wallet"]["balance"]) == Decimal("740.00")

    def test_insufficient_funds(self, api_client, funded):
        response = buy(api_client, quantity=21)

        assert response.status_code == 400
        assert response.data["code"] == "insufficient_funds"
        assert response.data["error"].startswith("Insufficient balance")
        assert Wallet.objects.get(user=funded).balance == Decimal("1000.00")

    def test_sell_unknown_symbol(self, api_client, funded):
        response = sell(api_client, symbol="QQQ")
        assert response.status_code == 404
        assert response.data["code"] == "symbol_not_found"

    def test_sell_more_than_held(self, api_client, funded):
        buy(api_client, quantity=2)
        response = sell(api_client, quantity=3)
        assert response.status_code == 400
        assert response.data["code"] == "insufficient_holdings"

    def test_credit_beyond_storable_balance(self, api_client, funded):
        Wallet.objects.filter(user=funded).update(balance=Decimal("99999999999999999999"))
        buy(api_client, quantity=1, price="1.00")

        response = sell(api_client, quantity=1, price="5.00")

        assert response.status_code == 400
        assert response.data["code"] == "validation_error"
        assert Wallet.objects.get(user=funded).balance == Decimal("99999999999999999998")

    @pytest.mark.parametrize("payload", [
        {"symbol": "AAPL", "quantity": 0, "price": "1.00"},
        {"symbol": "AAPL", "quantity": "1.5", "price": "1.00"},
        {"symbol": "AAPL", "quantity": 1, "price": "0"},
        {"symbol": "AAPL", "quantity": 1, "price": "1.123456789"},
        {"symbol": "AAPL", "quantity": 1, "price": 0.30000000000000004},
        {"symbol": "", "quantity": 1, "price": "1.00"},
        {"symbol": "NOT A TICKER", "quantity": 1, "price": "1.00"},
        {"quantity": 1, "price": "1.00"},
    ])
    def test_invalid_requests(self, api_client, funded, payload):
        response = api_client.post("/api/trades/buy/", payload, format="json")

        assert response.status_code == 400
        assert response.data["code"] == "validation_error"
        assert "details" in response.data
        assert Wallet.objects.get(user=funded).balance == Decimal("1000.00")

    def test_validation_message_names_field(self, api_client, funded):
        response = buy(api_client, price="1.123456789")
        assert response.data["error"].startswith("price: ")

    def test_list_and_filter_orders(self, api_client, funded):
        buy(api_client, symbol="AAPL", quantity=5)
        buy(api_client, symbol="MSFT", quantity=1, price="100.00")
        sell(api_client, symbol="AAPL", quantity=2)

        response = api_client.get("/api/trades/")
        assert response.status_code == 200
        assert response.data["count"] == 3
        assert [o["side"] for o in response.data["orders"]] == ["SELL", "BUY", "BUY"]

        response = api_client.get("/api/trades/", {"symbol": "aapl", "side": "buy"})
        assert response.data["count"] == 1

        response = api_client.get("/api/trades/", {"limit": 1, "offset": 1})
        assert [o["symbol"] for o in response.data["orders"]] == ["MSFT"]

    def test_invalid_side_filter(self, api_client, funded):
        response = api_client.get("/api/trades/", {"side": "HOLD"})
        assert response.status_code == 400
        assert response.data["code"] == "validation_error"

    def test_order_detail(self, api_client, funded):
        order_id = buy(api_client).data["order"]["id"]

        response = api_client.get(f"/api/trades/{order_id}/")
        assert response.status_code == 200
        assert response.data["order"]["id"] == order_id

    def test_other_users_order_is_not_found(self, api_client, funded, django_user_model):
        order_id = buy(api_client).data["order"]["id"]
        other = APIClient()
        other.force_authenticate(user=django_user_model.objects.create_user(username="other", password="password"))

        response = other.get(f"/api/trades/{order_id}/")
        assert response.status_code == 404
        assert response.data["code"] == "order_not_found"
        assert other.get("/api/trades/").data["count"] == 0


class TestStoreFailures:
    @pytest.mark.parametrize("error, status_code, code", [
        (StoreConflictError(), 409, "store_conflict"),
        (StoreUnavailableError(), 503, "store_unavailable"),
    ])
    def test_store_errors_map_to_status(self, api_client, funded, error, status_code, code):
        executor = mock.Mock()
        executor.execute.side_effect = error
        with mock.patch("trading.views.trading.get_trade_executor", return_value=executor):
            response = buy(api_client)

        assert response.status_code == status_code
        assert response.data["code"] == code

    def test_unexpected_error_is_500(self, api_client, funded):
        executor = mock.Mock()
        executor.execute.side_effect = RuntimeError("kaboom")
        with mock.patch("trading.views.trading.get_trade_executor", return_value=executor):
            response = buy(api_client)

        assert response.status_code == 500
        assert response.data == {"error": "Internal server error"}


class TestWallet:
    def test_wallet_detail(self, api_client, funded):
        response = api_client.get("/api/wallet/")
        assert response.status_code == 200
        assert response.data["wallet"]["user_id"] == funded.id

    def test_add_funds(self, api_client, funded):
        response = api_client.post("/api/wallet/add-funds/", {"amount": "250.50"}, format="json")

        assert response.status_code == 200
        assert response.data["message"] == "Funds added successfully"
        assert Decimal(response.data["wallet"]["balance"]) == Decimal("1250.50")

    def test_withdraw(self, api_client, funded):
        response = api_client.post("/api/wallet/withdraw/", {"amount": "100"}, format="json")
        assert response.status_code == 200
        assert Decimal(response.data["wallet"]["balance"]) == Decimal("900")

    def test_withdraw_too_much(self, api_client, funded):
        response = api_client.post("/api/wallet/withdraw/", {"amount": "1000.01"}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "insufficient_funds"

    def test_negative_amount(self, api_client, funded):
        response = api_client.post("/api/wallet/add-funds/", {"amount": "-5"}, format="json")
        assert response.status_code == 400

    def test_transactions(self, api_client, funded):
        buy(api_client)
        sell(api_client)

        response = api_client.get("/api/wallet/transactions/")
        assert response.status_code == 200
        assert [t["side"] for t in response.data["transactions"]] == ["SELL", "BUY"]


class TestPortfolioAndMarket:
    def test_portfolio_uses_cached_prices(self, api_client, funded):
        buy(api_client, symbol="AAPL", quantity=10, price="50.00")
        buy(api_client, symbol="MSFT", quantity=1, price="100.00")
        set_cached_price("AAPL", Decimal("60.00"))

        response = api_client.get("/api/portfolio/")

        assert response.status_code == 200
        aapl, msft = response.data["portfolio"]
        assert aapl["symbol"] == "AAPL"
        assert Decimal(aapl["market_value"]) == Decimal("600")
        assert Decimal(aapl["unrealized_pl"]) == Decimal("100")
        assert aapl["unrealized_pl_percent"] == "20.00"
        assert aapl["has_live_price"] is True
        assert msft["has_live_price"] is False
        assert Decimal(msft["current_price"]) == Decimal("100")

        summary = response.data["summary"]
        assert Decimal(summary["total_value"]) == Decimal("700")
        assert Decimal(summary["total_investment"]) == Decimal("600")
        assert summary["total_unrealized_pl_percent"] == "16.67"

    def test_empty_portfolio(self, api_client, funded):
        response = api_client.get("/api/portfolio/")
        assert response.data["portfolio"] == []
        assert Decimal(response.data["summary"]["total_value"]) == Decimal("0")

    def test_market_prices(self, api_client, funded):
        Stock.objects.create(symbol="AAPL", name="Apple Inc.")
        Stock.objects.create(symbol="TSLA", name="Tesla Inc.")
        set_cached_price("AAPL", Decimal("175.50"), timestamp=1700000000)

        response = api_client.get("/api/market/prices/")

        assert response.status_code == 200
        aapl, tsla = response.data["prices"]
        assert aapl["name"] == "Apple Inc."
        assert Decimal(aapl["price"]) == Decimal("175.50")
        assert aapl["timestamp"] == 1700000000
        assert tsla["price"] is None


class TestAuthAndTracing:
    @pytest.mark.parametrize("url", ["/api/trades/", "/api/wallet/", "/api/portfolio/", "/api/market/prices/"])
    def test_requires_authentication(self, url):
        assert APIClient().get(url).status_code == 401

    def test_jwt_login(self, user):
        client = APIClient()
        response = client.post("/api/auth/token/", {"username": "trader", "password": "password"}, format="json")
        assert response.status_code == 200

        client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        assert client.get("/api/wallet/").status_code == 200

    def test_request_id_is_echoed(self, api_client, funded):
        response = api_client.get("/api/wallet/", HTTP_X_REQUEST_ID="abc-123")
        assert response["X-Request-ID"] == "abc-123"

    def test_request_id_is_generated(self, api_client, funded):
        response = api_client.get("/api/wallet/", HTTP_X_REQUEST_ID="not valid!")
        assert response["X-Request-ID"] != "not valid!"
        assert len(response["X-Request-ID"]) == 32

    def test_health(self, client):
        response = client.get("/health/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readyz(self, client):
        response = client.get("/readyz/")
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "healthy", "cache": "healthy"}
