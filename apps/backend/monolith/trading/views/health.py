"""
Health check endpoints.

- /health/  - Liveness (no dependency checks)
- /readyz/  - Readiness (database and cache)
"""
from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET
import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = 'stock-ledger'


@require_GET
@csrf_exempt
def health_check(request):
    """Liveness probe: the process is up and serving requests."""
    return JsonResponse({
        'status': 'healthy',
        'service': SERVICE_NAME,
        'environment': 'development' if settings.DEBUG else 'production',
    })


@require_GET
@csrf_exempt
def readyz(request):
    """
    Readiness probe.

    Returns 200 only if the database and the price cache answer; 503
    otherwise, with the failing check marked unhealthy.
    """
    checks = {}
    all_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        checks['database'] = 'healthy'
    except Exception as e:
        logger.error(f"Database readiness check failed: {e}")
        checks['database'] = 'unhealthy'
        all_healthy = False

    try:
        cache.set('readyz_check', '1', timeout=1)
        if cache.get('readyz_check') != '1':
            raise ValueError("Cache returned unexpected value")
        checks['cache'] = 'healthy'
    except Exception as e:
        logger.error(f"Cache readiness check failed: {e}")
        checks['cache'] = 'unhealthy'
        all_healthy = False

    return JsonResponse({
        'status': 'ready' if all_healthy else 'not_ready',
        'service': SERVICE_NAME,
        'checks': checks,
    }, status=200 if all_healthy else 503)
