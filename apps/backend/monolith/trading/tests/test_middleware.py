import logging

import pytest
from django.http import HttpResponse
from django.test import RequestFactory

from trading.middleware.correlation_id import CorrelationIDMiddleware, resolve_correlation_id
from trading.middleware.logging_filter import (
    NO_REQUEST_ID,
    CorrelationIDFilter,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)


def record():
    return logging.LogRecord("trading", logging.INFO, __file__, 1, "msg", None, None)


def test_resolve_keeps_well_formed_ids():
    assert resolve_correlation_id("req-42.a:b_c") == "req-42.a:b_c"


def test_resolve_replaces_missing_or_hostile_ids():
    for raw in (None, "", "has space", "x" * 129, "line\nbreak", "abc\n"):
        generated = resolve_correlation_id(raw)
        assert generated != raw
        assert len(generated) == 32


def test_middleware_sets_and_clears_id():
    seen = {}

    def view(request):
        seen["request"] = request.correlation_id
        seen["thread"] = get_correlation_id()
        return HttpResponse("ok")

    request = RequestFactory().get("/", HTTP_X_REQUEST_ID="abc")
    response = CorrelationIDMiddleware(view)(request)

    assert seen == {"request": "abc", "thread": "abc"}
    assert response["X-Request-ID"] == "abc"
    assert get_correlation_id() is None


def test_middleware_clears_id_when_view_raises():
    def view(request):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        CorrelationIDMiddleware(view)(RequestFactory().get("/"))
    assert get_correlation_id() is None


def test_filter_stamps_records():
    log_filter = CorrelationIDFilter()

    rec = record()
    assert log_filter.filter(rec)
    assert rec.correlation_id == NO_REQUEST_ID

    set_correlation_id("abc")
    try:
        rec = record()
        log_filter.filter(rec)
        assert rec.correlation_id == "abc"
    finally:
        clear_correlation_id()


def test_scope_restores_previous_id():
    set_correlation_id("outer")
    try:
        with correlation_scope() as inner:
            assert get_correlation_id() == inner != "outer"
        assert get_correlation_id() == "outer"
    finally:
        clear_correlation_id()

    with correlation_scope("tick-1"):
        assert get_correlation_id() == "tick-1"
    assert get_correlation_id() is None
