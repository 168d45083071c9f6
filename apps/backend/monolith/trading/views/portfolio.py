import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trading.application.errors import LedgerError
from trading.application.wiring import get_portfolio_projector
from trading.serializers import PortfolioPositionSerializer, PortfolioSummarySerializer
from trading.services.market_price_cache import CachePriceLookup

from .errors import internal_error_response, ledger_error_response

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def portfolio(request):
    """
    Return the caller's holdings valued at the latest cached prices.

    Holdings without a cached price are valued at their average price and
    flagged with has_live_price=false.
    """
    projector = get_portfolio_projector()
    try:
        positions = projector.get_portfolio(request.user.id, CachePriceLookup())
        summary = projector.summarize(positions)
    except LedgerError as e:
        return ledger_error_response(e)
    except Exception as e:
        return internal_error_response("build portfolio", e)

    return Response({
        'portfolio': PortfolioPositionSerializer(positions, many=True).data,
        'summary': PortfolioSummarySerializer(summary).data,
    })
