"""
Output serializers for ledger domain objects.

They read the frozen dataclasses from trading.application.domain directly.
Decimals render as strings (COERCE_DECIMAL_TO_STRING).
"""

from decimal import ROUND_HALF_UP

from rest_framework import serializers


class OrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    symbol = serializers.CharField()
    name = serializers.CharField(source="stock.name")
    side = serializers.CharField(source="side.value")
    quantity = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=20, decimal_places=8)
    total_amount = serializers.DecimalField(max_digits=28, decimal_places=8)
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class WalletSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    balance = serializers.DecimalField(max_digits=28, decimal_places=8)


class PortfolioPositionSerializer(serializers.Serializer):
    symbol = serializers.CharField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    average_price = serializers.DecimalField(max_digits=28, decimal_places=10)
    current_price = serializers.DecimalField(max_digits=28, decimal_places=10)
    market_value = serializers.DecimalField(max_digits=38, decimal_places=10)
    cost_basis = serializers.DecimalField(max_digits=38, decimal_places=10)
    unrealized_pl = serializers.DecimalField(max_digits=38, decimal_places=10)
    unrealized_pl_percent = serializers.DecimalField(max_digits=20, decimal_places=2, rounding=ROUND_HALF_UP)
    has_live_price = serializers.BooleanField()


class PortfolioSummarySerializer(serializers.Serializer):
    total_value = serializers.DecimalField(max_digits=38, decimal_places=10)
    total_investment = serializers.DecimalField(max_digits=38, decimal_places=10)
    total_unrealized_pl = serializers.DecimalField(max_digits=38, decimal_places=10)
    total_unrealized_pl_percent = serializers.DecimalField(max_digits=20, decimal_places=2, rounding=ROUND_HALF_UP)


class MarketPriceSerializer(serializers.Serializer):
    symbol = serializers.CharField()
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=20, decimal_places=8, allow_null=True)
    timestamp = serializers.IntegerField(allow_null=True)
