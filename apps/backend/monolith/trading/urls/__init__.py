# trading/urls/__init__.py
"""
URL configuration for the ledger API (mounted under /api/).
"""

from django.urls import path
from rest_framework_simplejwt.views import (
    TokenBlacklistView,
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from ..views.market_views import market_prices
from ..views.portfolio import portfolio
from ..views.stream import stream
from ..views.trading import buy, list_orders, order_detail, sell
from ..views.wallet import add_funds, transactions, wallet_detail, withdraw

auth_patterns = [
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/token/verify/', TokenVerifyView.as_view(), name='token_verify'),
    path('auth/token/blacklist/', TokenBlacklistView.as_view(), name='token_blacklist'),
]

trade_patterns = [
    path('trades/', list_orders, name='trade_list'),
    path('trades/buy/', buy, name='trade_buy'),
    path('trades/sell/', sell, name='trade_sell'),
    path('trades/<int:order_id>/', order_detail, name='trade_detail'),
]

wallet_patterns = [
    path('wallet/', wallet_detail, name='wallet_detail'),
    path('wallet/add-funds/', add_funds, name='wallet_add_funds'),
    path('wallet/withdraw/', withdraw, name='wallet_withdraw'),
    path('wallet/transactions/', transactions, name='wallet_transactions'),
]

market_patterns = [
    path('portfolio/', portfolio, name='portfolio'),
    path('market/prices/', market_prices, name='market_prices'),
    path('stream/', stream, name='stream'),
]

urlpatterns = auth_patterns + trade_patterns + wallet_patterns + market_patterns
