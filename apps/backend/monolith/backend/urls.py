# backend/urls.py
"""
Main URL configuration for the ledger backend.

Authentication:
- POST /api/auth/token/           - Login (get access & refresh tokens)
- POST /api/auth/token/refresh/   - Refresh access token

Trading:
- POST /api/trades/buy/           - Buy shares
- POST /api/trades/sell/          - Sell shares
- GET  /api/trades/               - Orders, newest first
- GET  /api/trades/<id>/          - One order

Wallet:
- GET  /api/wallet/               - Balance
- POST /api/wallet/add-funds/     - Deposit
- POST /api/wallet/withdraw/      - Withdraw
- GET  /api/wallet/transactions/  - Last orders

Market / portfolio:
- GET  /api/portfolio/            - Holdings with P&L and totals
- GET  /api/market/prices/        - Cached prices
- GET  /api/stream/               - Server-sent events

Monitoring:
- GET  /health/, /readyz/         - Liveness / readiness
- GET  /metrics                   - Prometheus
"""

from django.contrib import admin
from django.urls import path, include

from trading.views.health import health_check, readyz

urlpatterns = [
    # Admin interface
    path('admin/', admin.site.urls),

    # API routes
    path('api/', include('trading.urls')),

    # Monitoring
    path('health/', health_check, name='health_check'),
    path('readyz/', readyz, name='readyz'),
    path('', include('django_prometheus.urls')),
]
