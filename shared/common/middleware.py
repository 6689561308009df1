# shared/common/middleware.py
"""
Custom Middleware Classes
"""

import time
import logging
from typing import Callable
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.conf import settings
from django.utils.module_loading import import_string

from .cache import CounterStore
from .constants import CORRELATION_ID_HEADER, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW_SECONDS
from .correlation import new_correlation_id, set_correlation_id, reset_correlation_id
from .exceptions import TooManyRequestsException, error_body

logger = logging.getLogger(__name__)

HEALTH_PATHS = ['/health/', '/health/readiness/', '/health/liveness/']


def get_client_ip(request: HttpRequest) -> str:
    """Extract client IP from request"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    x_real_ip = request.META.get('HTTP_X_REAL_IP')
    if x_real_ip:
        return x_real_ip.strip()
    return request.META.get('REMOTE_ADDR') or 'unknown'


class CorrelationIDMiddleware:
    """
    Middleware that attaches a correlation ID to each request.
    The ID is forwarded to the rental API and echoed back to the caller.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Get correlation ID from header or generate new one
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()

        request.correlation_id = correlation_id
        token = set_correlation_id(correlation_id)
        try:
            response = self.get_response(request)
        finally:
            reset_correlation_id(token)

        response[CORRELATION_ID_HEADER] = correlation_id
        return response


class LoggingMiddleware:
    """
    Logs one line when an API request starts and one when it finishes.
    Health probes are not logged.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path in HEALTH_PATHS:
            return self.get_response(request)

        started = time.perf_counter()
        context = {
            'method': request.method,
            'path': request.path,
            'ip_address': get_client_ip(request),
        }
        logger.info(f"{request.method} {request.path} started", extra=context)

        response = self.get_response(request)

        duration_ms = (time.perf_counter() - started) * 1000
        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            f"{request.method} {request.path} finished with {response.status_code}",
            extra={**context, 'status_code': response.status_code, 'duration_ms': round(duration_ms, 2)}
        )

        response['X-Response-Time'] = f"{duration_ms:.2f}ms"
        return response


class SecurityHeadersMiddleware:
    """
    Adds the static security headers. HSTS is only sent over HTTPS.
    """

    HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'X-XSS-Protection': '1; mode=block',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Permissions-Policy': 'camera=(), microphone=(), geolocation=()',
        'Cross-Origin-Opener-Policy': 'same-origin',
        'Cross-Origin-Resource-Policy': 'same-origin',
        'Content-Security-Policy': "default-src 'self'; frame-ancestors 'none'; object-src 'none'",
    }
    HSTS = 'max-age=31536000; includeSubDomains'

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        response = self.get_response(request)
        for header, value in self.HEADERS.items():
            response.setdefault(header, value)
        if request.is_secure():
            response['Strict-Transport-Security'] = self.HSTS
        return response


class RateLimitMiddleware:
    """
    Fixed-window rate limiting for API routes, keyed by client IP.

    Counters live in a CounterStore chosen by ``RATE_LIMIT_STORE``; use the
    cache-backed store when more than one instance serves traffic.
    """

    PROTECTED_PREFIX = '/api/'

    def __init__(self, get_response: Callable, store: CounterStore = None):
        self.get_response = get_response
        self.rate_limit = getattr(settings, 'RATE_LIMIT_REQUESTS', RATE_LIMIT_REQUESTS)
        self.window = getattr(settings, 'RATE_LIMIT_WINDOW', RATE_LIMIT_WINDOW_SECONDS)
        self.store = store or self._load_store()

    @staticmethod
    def _load_store() -> CounterStore:
        store_path = getattr(
            settings, 'RATE_LIMIT_STORE', 'shared.common.cache.CacheCounterStore'
        )
        return import_string(store_path)()

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not request.path.startswith(self.PROTECTED_PREFIX):
            return self.get_response(request)

        client_ip = get_client_ip(request)
        count, reset_at = self.store.hit(f"ip:{client_ip}", self.window)

        if count > self.rate_limit:
            logger.warning(
                f"Rate limit exceeded for {client_ip}",
                extra={'ip_address': client_ip, 'path': request.path}
            )
            response = JsonResponse(
                error_body(
                    TooManyRequestsException.error_code,
                    TooManyRequestsException.default_detail,
                    getattr(request, 'correlation_id', None),
                ),
                status=TooManyRequestsException.status_code
            )
            response['Retry-After'] = str(max(0, reset_at - int(time.time())))
            return response

        response = self.get_response(request)

        response['X-RateLimit-Limit'] = str(self.rate_limit)
        response['X-RateLimit-Remaining'] = str(max(0, self.rate_limit - count))

        return response
