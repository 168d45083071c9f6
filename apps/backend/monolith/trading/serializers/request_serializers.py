"""
Request schemas for the ledger endpoints.

Validated before any use case is invoked; the use cases re-check their own
preconditions, so these only need to give good 400 messages.
"""

import re
from decimal import Decimal

from rest_framework import serializers

SYMBOL_PATTERN = re.compile(r'^[A-Z0-9.\-]{1,16}$')

MIN_AMOUNT = Decimal("0.00000001")
MAX_QUANTITY = 1_000_000_000


def _normalize_symbol(value: str) -> str:
    symbol = value.strip().upper()
    if not SYMBOL_PATTERN.match(symbol):
        raise serializers.ValidationError("Symbol must be 1-16 letters, digits, '.' or '-'")
    return symbol


class TradeRequestSerializer(serializers.Serializer):
    """Input for POST /api/trades/buy/ and /api/trades/sell/."""

    symbol = serializers.CharField(max_length=16, help_text="Ticker, e.g. AAPL")
    quantity = serializers.IntegerField(
        min_value=1,
        max_value=MAX_QUANTITY,
        help_text="Whole number of shares",
    )
    price = serializers.DecimalField(
        max_digits=20,
        decimal_places=8,
        min_value=MIN_AMOUNT,
        help_text="Reference price per share",
    )

    def validate_symbol(self, value):
        return _normalize_symbol(value)


class AmountRequestSerializer(serializers.Serializer):
    """Input for wallet deposits and withdrawals."""

    amount = serializers.DecimalField(
        max_digits=20,
        decimal_places=8,
        min_value=MIN_AMOUNT,
        help_text="Positive amount of cash",
    )


class OrderListQuerySerializer(serializers.Serializer):
    """Query string for GET /api/trades/."""

    symbol = serializers.CharField(max_length=16, required=False, allow_blank=True)
    side = serializers.CharField(required=False, allow_blank=True)
    limit = serializers.IntegerField(min_value=1, max_value=500, required=False)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate_symbol(self, value):
        return _normalize_symbol(value) if value.strip() else None

    def validate_side(self, value):
        side = value.strip().upper()
        if not side:
            return None
        if side not in ("BUY", "SELL"):
            raise serializers.ValidationError("side must be BUY or SELL")
        return side
