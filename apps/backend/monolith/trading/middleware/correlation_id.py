"""
Correlation ID middleware for request tracing.

Reads X-Request-ID (or generates one), exposes it as `request.correlation_id`
for the duration of the request, and echoes it in the response.
"""
import re

from .logging_filter import clear_correlation_id, new_correlation_id, set_correlation_id

HEADER = 'X-Request-ID'
META_KEY = 'HTTP_X_REQUEST_ID'

# Client supplied IDs are echoed into logs and headers; keep them tame.
_VALID_ID = re.compile(r'[A-Za-z0-9._:-]{1,128}')


def resolve_correlation_id(raw):
    if raw and _VALID_ID.fullmatch(raw):
        return raw
    return new_correlation_id()


class CorrelationIDMiddleware:
    """
    - Accepts a well-formed X-Request-ID from the client, otherwise generates one
    - Sets it in thread-local storage for the logging filter
    - Returns it in the X-Request-ID response header
    - Always clears the thread-local, even when the view raises
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = resolve_correlation_id(request.META.get(META_KEY))
        request.correlation_id = request_id
        set_correlation_id(request_id)
        try:
            response = self.get_response(request)
        finally:
            clear_correlation_id()
        response[HEADER] = request_id
        return response
