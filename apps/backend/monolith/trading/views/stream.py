"""
Server-sent events stream.

GET /api/stream/ opens one channel on the event bus for the lifetime of the
response. The client receives:
- `prices`: snapshot of cached prices, first and then on every heartbeat
- `trade.executed`: the caller's own executed orders
- `price.updated`: ticks published in this process

The response ends after LEDGER['STREAM_MAX_SECONDS']; clients reconnect.
"""

import json
import logging
import time

from django.conf import settings
from django.http import StreamingHttpResponse
from rest_framework.decorators import api_view, permission_classes, renderer_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import BaseRenderer, JSONRenderer
from rest_framework.utils.encoders import JSONEncoder

from trading.application.use_cases import TRADE_EXECUTED_TOPIC
from trading.application.wiring import get_event_bus
from trading.serializers import MarketPriceSerializer
from trading.services.price_feed import PRICE_UPDATED_TOPIC

from .market_views import market_snapshot

logger = logging.getLogger(__name__)

PRICES_EVENT = 'prices'


class EventStreamRenderer(BaseRenderer):
    """Lets DRF negotiate text/event-stream; only error bodies go through render()."""
    media_type = 'text/event-stream'
    format = 'sse'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        return json.dumps(data, cls=JSONEncoder).encode(self.charset)


def format_event(event: str, payload) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, cls=JSONEncoder)}\n\n"


def _prices_event() -> str:
    return format_event(PRICES_EVENT, {'prices': MarketPriceSerializer(market_snapshot(), many=True).data})


def event_stream(open_channel, max_seconds: float, heartbeat_seconds: float, clock=time.monotonic):
    """
    Yield SSE frames until the deadline.

    The channel is opened when the stream starts and closed when it ends or
    the client goes away (Django closes the generator).
    """
    deadline = clock() + max_seconds
    subscription = open_channel()
    try:
        yield _prices_event()
        while True:
            remaining = deadline - clock()
            if remaining <= 0:
                break
            item = subscription.get(timeout=min(heartbeat_seconds, remaining))
            if item is None:
                if subscription.closed:
                    break
                yield _prices_event()
                continue
            topic, payload = item
            yield format_event(topic, payload)
    finally:
        subscription.close()
        if subscription.dropped:
            logger.warning(f"Stream dropped {subscription.dropped} events for a slow client")


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@renderer_classes([JSONRenderer, EventStreamRenderer])
def stream(request):
    user_id = request.user.id

    def mine(topic, payload):
        return topic != TRADE_EXECUTED_TOPIC or payload.get('user_id') == user_id

    def open_channel():
        return get_event_bus().open_channel(
            topics=(TRADE_EXECUTED_TOPIC, PRICE_UPDATED_TOPIC),
            predicate=mine,
        )

    ledger = settings.LEDGER
    response = StreamingHttpResponse(
        event_stream(
            open_channel,
            max_seconds=ledger.get('STREAM_MAX_SECONDS', 300),
            heartbeat_seconds=ledger.get('STREAM_HEARTBEAT_SECONDS', 15),
        ),
        content_type='text/event-stream',
    )
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response
