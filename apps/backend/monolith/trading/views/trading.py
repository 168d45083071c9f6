"""
Trade endpoints.

- POST /api/trades/buy/    - Buy shares at a reference price
- POST /api/trades/sell/   - Sell shares at a reference price
- GET  /api/trades/        - Caller's orders, newest first (filters: symbol, side, limit, offset)
- GET  /api/trades/<id>/   - One of the caller's orders

Execution is immediate: an accepted request returns the completed order.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trading.application.domain import Side
from trading.application.errors import LedgerError
from trading.application.wiring import get_order_query, get_trade_executor
from trading.serializers import OrderListQuerySerializer, OrderSerializer, TradeRequestSerializer

from .errors import internal_error_response, ledger_error_response, serializer_error_response

logger = logging.getLogger(__name__)


def _execute_trade(request, side: Side):
    serializer = TradeRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return serializer_error_response(serializer.errors)
    data = serializer.validated_data

    try:
        order = get_trade_executor().execute(
            request.user.id,
            side.value,
            data['symbol'],
            data['quantity'],
            data['price'],
        )
    except LedgerError as e:
        logger.info(f"{side.value} rejected for user {request.user.id}: {e.code}")
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response(f"execute {side.value}", e)

    verb = 'purchased' if side is Side.BUY else 'sold'
    return Response({
        'message': f'Stock {verb} successfully',
        'order': OrderSerializer(order).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def buy(request):
    """
    Buy shares.

    Request body:
        - symbol: Ticker (created on first purchase if unknown)
        - quantity: Whole number of shares (> 0)
        - price: Reference price per share (> 0, at most 8 decimals)
    """
    return _execute_trade(request, Side.BUY)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sell(request):
    """
    Sell shares the caller holds.

    Request body: same as buy. Unknown symbols return 404.
    """
    return _execute_trade(request, Side.SELL)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_orders(request):
    query = OrderListQuerySerializer(data=request.query_params)
    if not query.is_valid():
        return serializer_error_response(query.errors)
    params = query.validated_data

    try:
        orders = get_order_query().list_orders(
            request.user.id,
            symbol=params.get('symbol'),
            side=params.get('side'),
            limit=params.get('limit'),
            offset=params.get('offset', 0),
        )
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("list orders", e)

    return Response({
        'count': len(orders),
        'orders': OrderSerializer(orders, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, order_id):
    try:
        order = get_order_query().get_order(request.user.id, order_id)
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("get order", e)

    return Response({'order': OrderSerializer(order).data})
