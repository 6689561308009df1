# shared/common/correlation.py
"""
Correlation ID context.

Holds the correlation ID of the request being served so that log records and
outbound calls to the rental API can carry it.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def set_correlation_id(correlation_id: Optional[str]):
    """Set the correlation ID for the current context, returning the reset token."""
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token) -> None:
    _correlation_id.reset(token)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def new_correlation_id() -> str:
    return str(uuid.uuid4())


class CorrelationIdFilter(logging.Filter):
    """Injects correlation_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or '-'
        return True
