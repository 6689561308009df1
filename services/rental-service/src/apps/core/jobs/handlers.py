# services/rental-service/src/apps/core/jobs/handlers.py
"""
Job Capabilities

One capability per queue. Processors receive an implementation resolved
from settings.JOB_HANDLERS; the Logging* classes simulate the work by
sleeping for the queue's configured delay and logging the payload.
"""

import logging
import time
from typing import Any, Dict, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from shared.common.constants import Queues

logger = logging.getLogger(__name__)


def stub_delay(queue: str) -> float:
    return float(getattr(settings, 'JOB_STUB_DELAYS', {}).get(queue, 0))


def get_handler(queue: str) -> Any:
    """Instantiate the configured capability for a queue."""
    path = settings.JOB_HANDLERS[Queues(queue).value]
    return import_string(path)()


# =============================================================================
# CAPABILITIES
# =============================================================================

class EmailSender:
    """Sends transactional emails (confirmation, receipt, reminder)."""

    def send(self, template: str, email: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class PushNotifier:
    """Delivers a notification to a user."""

    def notify(self, notification: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class BookingActionHandler:
    """Applies a confirm/cancel/modify action to a booking."""

    def handle(self, action: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class PdfRenderer:
    """Renders a contract, invoice or receipt PDF."""

    def render(self, document: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class CleanupRunner:
    """Purges old bookings, failed payments or temp files."""

    def cleanup(self, target: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


# =============================================================================
# LOGGING STUBS
# =============================================================================

class _SimulatedWork:
    queue: str = None

    def __init__(self, delay: Optional[float] = None):
        self.delay = stub_delay(self.queue) if delay is None else delay

    def _simulate(self) -> None:
        if self.delay:
            time.sleep(self.delay)


class LoggingEmailSender(_SimulatedWork, EmailSender):
    queue = Queues.EMAIL.value

    def send(self, template: str, email: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate()
        logger.info(
            f"[MOCK] Sending {template} email to {email.get('to')}",
            extra={
                'to': email.get('to'),
                'subject': email.get('subject'),
                'template': email.get('template', template),
            }
        )
        return {'sent': True, 'to': email.get('to'), 'template': template}


class LoggingPushNotifier(_SimulatedWork, PushNotifier):
    queue = Queues.NOTIFICATIONS.value

    def notify(self, notification: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate()
        logger.info(
            f"[MOCK] Sending {notification.get('type')} notification "
            f"to user {notification.get('userId')}"
        )
        return {'sent': True, 'userId': notification.get('userId')}


class LoggingBookingActionHandler(_SimulatedWork, BookingActionHandler):
    queue = Queues.BOOKING_PROCESSING.value

    def handle(self, action: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate()
        logger.info(
            f"[MOCK] Processing booking {action.get('action')} "
            f"for booking {action.get('bookingId')}"
        )
        return {
            'processed': True,
            'bookingId': action.get('bookingId'),
            'action': action.get('action'),
        }


class LoggingPdfRenderer(_SimulatedWork, PdfRenderer):
    queue = Queues.PDF_GENERATION.value

    def render(self, document: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate()
        logger.info(
            f"[MOCK] Generating {document.get('type')} PDF "
            f"for entity {document.get('entityId')}"
        )
        return {
            'generated': True,
            'type': document.get('type'),
            'entityId': document.get('entityId'),
        }


class LoggingCleanupRunner(_SimulatedWork, CleanupRunner):
    queue = Queues.CLEANUP.value

    def cleanup(self, target: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate()
        logger.info(
            f"[MOCK] Cleaning up {target.get('type')} "
            f"older than {target.get('olderThanDays')} days"
        )
        return {'cleaned': True, 'type': target.get('type')}
