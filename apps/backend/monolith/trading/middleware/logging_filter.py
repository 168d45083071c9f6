"""
Logging filter that stamps every record with the current correlation ID.

Request threads get their ID from CorrelationIDMiddleware; background loops
(the price feed command) open a `correlation_scope` per unit of work.
"""
import logging
import uuid
from contextlib import contextmanager
from threading import local

NO_REQUEST_ID = 'no-request-id'

_thread_locals = local()


def new_correlation_id():
    return uuid.uuid4().hex


def set_correlation_id(correlation_id):
    """Store correlation ID in thread-local storage."""
    _thread_locals.correlation_id = correlation_id


def get_correlation_id():
    """Retrieve correlation ID from thread-local storage."""
    return getattr(_thread_locals, 'correlation_id', None)


def clear_correlation_id():
    if hasattr(_thread_locals, 'correlation_id'):
        del _thread_locals.correlation_id


@contextmanager
def correlation_scope(correlation_id=None):
    """Bind a correlation ID for the duration of the block, then restore the previous one."""
    previous = get_correlation_id()
    set_correlation_id(correlation_id or new_correlation_id())
    try:
        yield get_correlation_id()
    finally:
        if previous is None:
            clear_correlation_id()
        else:
            set_correlation_id(previous)


class CorrelationIDFilter(logging.Filter):
    """
    Adds `correlation_id` to log records.

    Usage in LOGGING config:
        'filters': {
            'correlation_id': {
                '()': 'trading.middleware.logging_filter.CorrelationIDFilter',
            },
        },
    """

    def filter(self, record):
        record.correlation_id = get_correlation_id() or NO_REQUEST_ID
        return True
