"""
Single mapping from ledger errors to HTTP responses.

Body shape for every failure: {"error": <human readable>, "code": <code>}.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from trading.application.errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    LedgerError,
    OrderNotFoundError,
    StoreConflictError,
    StoreUnavailableError,
    SymbolNotFoundError,
    ValidationError,
    WalletNotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InsufficientFundsError, status.HTTP_400_BAD_REQUEST),
    (InsufficientHoldingsError, status.HTTP_400_BAD_REQUEST),
    (SymbolNotFoundError, status.HTTP_404_NOT_FOUND),
    (WalletNotFoundError, status.HTTP_404_NOT_FOUND),
    (OrderNotFoundError, status.HTTP_404_NOT_FOUND),
    (StoreConflictError, status.HTTP_409_CONFLICT),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(error: LedgerError) -> int:
    for error_class, http_status in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return http_status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def ledger_error_response(error: LedgerError) -> Response:
    http_status = status_for(error)
    if http_status >= 500:
        logger.error(f"Ledger failure ({error.code}): {error}")
    elif http_status == status.HTTP_409_CONFLICT:
        logger.warning(f"Ledger conflict: {error}")
    return Response({'error': error.message, 'code': error.code}, status=http_status)


def serializer_error_response(errors: dict) -> Response:
    """400 for a failed request schema, keeping DRF's per-field details."""
    field, messages = next(iter(errors.items()))
    message = messages[0] if isinstance(messages, list) and messages else messages
    prefix = '' if field == 'non_field_errors' else f'{field}: '
    return Response({
        'error': f'{prefix}{message}',
        'code': ValidationError.code,
        'details': errors,
    }, status=status.HTTP_400_BAD_REQUEST)


def internal_error_response(action: str, error: Exception) -> Response:
    logger.error(f"Failed to {action}: {error}", exc_info=True)
    return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
