"""
Serializers package.

Request schemas validate input before a use case runs; response serializers
render domain objects.
"""

from .request_serializers import (
    AmountRequestSerializer,
    OrderListQuerySerializer,
    TradeRequestSerializer,
)
from .response_serializers import (
    MarketPriceSerializer,
    OrderSerializer,
    PortfolioPositionSerializer,
    PortfolioSummarySerializer,
    WalletSerializer,
)

__all__ = [
    "AmountRequestSerializer",
    "OrderListQuerySerializer",
    "TradeRequestSerializer",
    "MarketPriceSerializer",
    "OrderSerializer",
    "PortfolioPositionSerializer",
    "PortfolioSummarySerializer",
    "WalletSerializer",
]
