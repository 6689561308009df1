"""
Health Check Module.

Provides the overall, readiness and liveness endpoints.
"""
import logging
import time
from typing import Any, Callable, Dict
from datetime import datetime, timezone

import httpx
import psutil
from django.db import connection
from django.core.cache import cache
from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)

_STARTED_AT = time.time()


# =============================================================================
# HEALTH CHECK STATUS
# =============================================================================

class HealthStatus:
    """Health check status constants."""
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class ServiceStatus:
    """Per-dependency status constants."""
    UP = "up"
    DOWN = "down"


# Dependencies whose failure only degrades the service
NON_CRITICAL_SERVICES = {"external_services"}


# =============================================================================
# HEALTH CHECK FUNCTIONS
# =============================================================================

class ProbeFailed(Exception):
    """A dependency answered, but not with a healthy result."""


def _probe(name: str, probe: Callable[[], str], log=logger.error) -> Dict[str, Any]:
    """Run ``probe`` and report it as up (with latency) or down."""
    start = time.time()
    try:
        details = probe()
    except Exception as e:
        log(f"{name} health check failed: {e}")
        return {"status": ServiceStatus.DOWN, "details": str(e)}
    return {
        "status": ServiceStatus.UP,
        "details": details,
        "latency_ms": round((time.time() - start) * 1000, 2),
    }


def _select_one() -> str:
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return "Database connection successful"


def _cache_round_trip() -> str:
    key = f"health-check:{time.time()}"
    cache.set(key, "OK", 10)
    value = cache.get(key)
    cache.delete(key)
    if value != "OK":
        raise ProbeFailed("Cache read/write mismatch")
    return "Redis connection successful"


def _rental_api_health() -> str:
    base_url = getattr(settings, 'RENTAL_API_URL', 'http://localhost:3001').rstrip('/')
    response = httpx.get(f"{base_url}/health", timeout=5.0)
    if response.status_code != 200:
        raise ProbeFailed(f"HTTP {response.status_code}")
    if response.json().get("status") != HealthStatus.OK:
        raise ProbeFailed("Rental API reports degraded health")
    return "All external services operational"


def check_database() -> Dict[str, Any]:
    """Check database connectivity."""
    return _probe("Database", _select_one)


def check_cache() -> Dict[str, Any]:
    """Check cache connectivity with a write/read round trip."""
    return _probe("Cache", _cache_round_trip)


def check_upstream_api() -> Dict[str, Any]:
    """Check that the rental API answers its own health endpoint."""
    return _probe("Rental API", _rental_api_health, log=logger.warning)


def get_memory_usage_mb() -> int:
    """Resident memory of this process in MB."""
    return round(psutil.Process().memory_info().rss / 1024 / 1024)


def aggregate_status(services: Dict[str, Dict[str, Any]]) -> str:
    """
    Reduce per-dependency results to ok / warning / error.

    A failing critical dependency is an error; failing non-critical ones only
    raise a warning.
    """
    down = {name for name, check in services.items() if check["status"] == ServiceStatus.DOWN}
    if down - NON_CRITICAL_SERVICES:
        return HealthStatus.ERROR
    if down:
        return HealthStatus.WARNING
    return HealthStatus.OK


# =============================================================================
# HEALTH CHECK VIEWS
# =============================================================================

@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """
    Overall health snapshot.

    Returns 200 for ok and warning, 503 for error.
    """
    services = {
        "database": check_database(),
        "redis": check_cache(),
        "external_services": check_upstream_api(),
    }
    overall_status = aggregate_status(services)

    memory = psutil.Process().memory_info()

    return Response(
        {
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.time() - _STARTED_AT, 2),
            "version": getattr(settings, 'APP_VERSION', '1.0.0'),
            "services": services,
            "memory": {
                "rss": round(memory.rss / 1024 / 1024),
                "vms": round(memory.vms / 1024 / 1024),
            },
        },
        status=503 if overall_status == HealthStatus.ERROR else 200
    )


@api_view(['GET'])
@permission_classes([AllowAny])
def readiness_check(request):
    """
    Readiness probe endpoint.

    Ready once the database answers.
    """
    database = check_database()
    if database["status"] == ServiceStatus.UP:
        return Response({"status": HealthStatus.OK, "database": "ready"})

    return Response(
        {
            "status": HealthStatus.ERROR,
            "database": "not ready",
            "error": database["details"],
        },
        status=503
    )


@api_view(['GET'])
@permission_classes([AllowAny])
def liveness_check(request):
    """
    Liveness probe endpoint.

    Fails when resident memory exceeds HEALTH_MEMORY_LIMIT_MB so the
    orchestrator restarts the container.
    """
    limit_mb = getattr(settings, 'HEALTH_MEMORY_LIMIT_MB', 300)
    usage_mb = get_memory_usage_mb()

    if usage_mb > limit_mb:
        logger.error(f"Liveness check failed: {usage_mb}MB in use, limit {limit_mb}MB")
        return Response(
            {
                "status": HealthStatus.ERROR,
                "message": "Memory usage too high",
                "memory_usage_mb": usage_mb,
            },
            status=503
        )

    return Response({
        "status": HealthStatus.OK,
        "message": "Service is alive",
        "memory_usage_mb": usage_mb,
    })


# =============================================================================
# URL PATTERNS
# =============================================================================

def get_health_urlpatterns():
    """
    Returns URL patterns for health check endpoints.

    Usage in urls.py:
        from shared.common.health import get_health_urlpatterns
        urlpatterns += get_health_urlpatterns()
    """
    from django.urls import path

    return [
        path('health/', health_check, name='health'),
        path('health/readiness/', readiness_check, name='readiness'),
        path('health/liveness/', liveness_check, name='liveness'),
    ]
