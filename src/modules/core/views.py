import time
from typing import Any, Callable, Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger(__name__)

_CACHE_PROBE_KEY = "foodorders:health"


def _timed(probe: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.monotonic()
    details = probe()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        **details,
    }


def _probe_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {}


def _probe_cache() -> Dict[str, Any]:
    cache.set(_CACHE_PROBE_KEY, "ok", 10)
    if cache.get(_CACHE_PROBE_KEY) != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def _outbox_backlog() -> Dict[str, int]:
    """Status notifications still waiting for the relay.

    Informational only; a backlog never marks the service unhealthy.
    """
    ready = OutboxEvent.objects.ready_for_relay(settings.OUTBOX_MAX_RETRIES)
    return {
        "pending": ready.filter(status=EventStatus.PENDING).count(),
        "retrying": ready.filter(status=EventStatus.FAILED).count(),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: database and cache probes, 503 when either is down."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, probe in (("database", _probe_database), ("cache", _probe_cache)):
        try:
            services[name] = _timed(probe)
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.exception("health_check.probe_failed", service=name)

    if services["database"]["status"] == "up":
        services["notifications"] = _outbox_backlog()

    status = "healthy" if overall_healthy else "unhealthy"
    logger.info("health_check.completed", status=status)

    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )
