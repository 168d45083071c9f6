"""
Market data endpoints (read-only view of the price cache).
"""

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trading.application.errors import LedgerError
from trading.application.wiring import get_ledger_store
from trading.serializers import MarketPriceSerializer
from trading.services.market_price_cache import get_cached_quote

from .errors import internal_error_response, ledger_error_response

logger = logging.getLogger(__name__)


def market_snapshot() -> list[dict]:
    """Every known stock with its cached price (None when the feed has not priced it)."""
    rows = []
    for stock in get_ledger_store().list_stocks():
        quote = get_cached_quote(stock.symbol)
        rows.append({
            'symbol': stock.symbol,
            'name': stock.name,
            'price': quote['price'] if quote else None,
            'timestamp': quote['timestamp'] if quote else None,
        })
    return rows


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def market_prices(request):
    try:
        rows = market_snapshot()
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("read market prices", e)

    return Response({'prices': MarketPriceSerializer(rows, many=True).data})
