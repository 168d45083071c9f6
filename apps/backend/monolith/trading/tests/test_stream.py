import itertools
import json
from decimal import Decimal
from unittest import mock

import pytest

from trading.application import ChannelEventBus
from trading.models import Stock
from trading.services.market_price_cache import set_cached_price
from trading.views.stream import event_stream, format_event

pytestmark = pytest.mark.django_db


class FakeSubscription:
    def __init__(self, items=()):
        self.items = list(items)
        self.closed = False
        self.dropped = 0

    def get(self, timeout=None):
        return self.items.pop(0) if self.items else None

    def close(self):
        self.closed = True


def parse(frame):
    event_line, data_line = frame.strip().split("\n")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


def test_format_event():
    frame = format_event("trade.executed", {"id": 1, "price": "1.50"})
    assert frame == 'event: trade.executed\ndata: {"id": 1, "price": "1.50"}\n\n'


def test_stream_starts_with_snapshot_then_events_and_heartbeats():
    Stock.objects.create(symbol="AAPL", name="Apple Inc.")
    set_cached_price("AAPL", Decimal("175.50"), timestamp=1)
    subscription = FakeSubscription([("trade.executed", {"id": 9})])

    frames = list(event_stream(lambda: subscription, max_seconds=3, heartbeat_seconds=1,
                               clock=itertools.count().__next__))

    assert [parse(f)[0] for f in frames] == ["prices", "trade.executed", "prices"]
    _, snapshot = parse(frames[0])
    assert snapshot["prices"][0]["symbol"] == "AAPL"
    assert snapshot["prices"][0]["price"] == "175.50000000"
    assert subscription.closed


def test_channel_opens_lazily_and_closes_when_client_leaves():
    bus = ChannelEventBus()
    stream = event_stream(bus.open_channel, max_seconds=30, heartbeat_seconds=30)
    assert bus.subscriber_count == 0

    assert parse(next(stream))[0] == "prices"
    assert bus.subscriber_count == 1

    bus.publish("trade.executed", {"id": 3})
    assert parse(next(stream)) == ("trade.executed", {"id": 3})

    stream.close()
    assert bus.subscriber_count == 0


def test_stream_view_filters_other_users_trades(api_client, user):
    captured = {}

    def fake_stream(open_channel, **kwargs):
        captured["open_channel"] = open_channel
        captured.update(kwargs)
        return iter([])

    with mock.patch("trading.views.stream.event_stream", side_effect=fake_stream):
        response = api_client.get("/api/stream/")

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/event-stream")
    assert response["Cache-Control"] == "no-cache"
    assert captured["max_seconds"] == 1

    with captured["open_channel"]() as channel:
        assert channel.wants("trade.executed", {"user_id": user.id})
        assert not channel.wants("trade.executed", {"user_id": user.id + 1})
        assert channel.wants("price.updated", {"tick": 1})
        assert not channel.wants("something.else", {})


def test_stream_view_streams_snapshot(api_client):
    response = api_client.get("/api/stream/", HTTP_ACCEPT="text/event-stream")

    body = b"".join(response.streaming_content).decode()
    assert body.startswith("event: prices\n")


def test_stream_requires_authentication(client):
    assert client.get("/api/stream/").status_code in (401, 403)
