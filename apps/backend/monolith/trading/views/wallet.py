"""
Wallet endpoints.

- GET  /api/wallet/               - Current balance
- POST /api/wallet/add-funds/     - Deposit cash
- POST /api/wallet/withdraw/      - Withdraw cash
- GET  /api/wallet/transactions/  - Latest orders as the transaction log
"""

import logging

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trading.application.errors import LedgerError
from trading.application.wiring import get_order_query, get_wallet_service
from trading.serializers import AmountRequestSerializer, OrderSerializer, WalletSerializer

from .errors import internal_error_response, ledger_error_response, serializer_error_response

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wallet_detail(request):
    try:
        wallet = get_wallet_service().get_wallet(request.user.id)
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("get wallet", e)

    return Response({'wallet': WalletSerializer(wallet).data})


def _move_funds(request, operation: str, message: str):
    serializer = AmountRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return serializer_error_response(serializer.errors)

    service = get_wallet_service()
    try:
        wallet = getattr(service, operation)(request.user.id, serializer.validated_data['amount'])
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response(operation, e)

    return Response({'message': message, 'wallet': WalletSerializer(wallet).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def add_funds(request):
    """
    Deposit cash into the caller's wallet.

    Request body:
        - amount: Positive amount, at most 8 decimals
    """
    return _move_funds(request, 'deposit', 'Funds added successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def withdraw(request):
    """Withdraw cash; rejected with insufficient_funds when the balance is short."""
    return _move_funds(request, 'withdraw', 'Funds withdrawn successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transactions(request):
    limit = settings.LEDGER.get('TRANSACTION_HISTORY_LIMIT', 50)
    try:
        orders = get_order_query().list_trades(request.user.id, limit=limit)
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("list transactions", e)

    return Response({'transactions': OrderSerializer(orders, many=True).data})
