# services/rental-service/src/apps/core/jobs/processors.py
"""
Queue Processors

One processor per queue. A processor dispatches on the exact job name and
hands the payload to the queue's capability.
"""

import logging
from typing import Any, Callable, Dict

from shared.common.constants import Queues

from .handlers import get_handler

logger = logging.getLogger(__name__)


class JobProcessor:
    """
    Base processor.

    Subclasses set ``queue`` and map job names to handler method names in
    ``routes``.
    """

    queue: str = None
    routes: Dict[str, str] = {}

    def __init__(self, handler: Any = None):
        self.handler = handler if handler is not None else get_handler(self.queue)

    def resolve(self, job_name: str) -> Callable[[Dict[str, Any]], Any]:
        from apps.core.services import UnknownJobError

        route = self.routes.get(job_name)
        if route is None:
            raise UnknownJobError(self.queue, job_name)
        return getattr(self, route)

    def process(self, job_name: str, data: Dict[str, Any]) -> Any:
        logger.info(f"Processing {self.queue} job: {job_name}")
        handle = self.resolve(job_name)
        try:
            result = handle(data or {})
        except Exception:
            logger.error(f"Failed {self.queue} job: {job_name}")
            raise
        logger.info(f"Completed {self.queue} job: {job_name}")
        return result


class EmailProcessor(JobProcessor):
    queue = Queues.EMAIL.value
    routes = {
        'booking-confirmation': 'send_booking_confirmation',
        'payment-receipt': 'send_payment_receipt',
        'booking-reminder': 'send_booking_reminder',
    }

    def send_booking_confirmation(self, data):
        return self.handler.send('booking-confirmation', data)

    def send_payment_receipt(self, data):
        return self.handler.send('payment-receipt', data)

    def send_booking_reminder(self, data):
        return self.handler.send('booking-reminder', data)


class NotificationProcessor(JobProcessor):
    queue = Queues.NOTIFICATIONS.value
    routes = {'booking-notification': 'send_notification'}

    def send_notification(self, data):
        return self.handler.notify(data)


class BookingProcessor(JobProcessor):
    queue = Queues.BOOKING_PROCESSING.value
    routes = {'process-booking': 'process_booking'}

    def process_booking(self, data):
        return self.handler.handle(data)


class PdfProcessor(JobProcessor):
    queue = Queues.PDF_GENERATION.value
    routes = {'generate-pdf': 'generate_pdf'}

    def generate_pdf(self, data):
        return self.handler.render(data)


class CleanupProcessor(JobProcessor):
    queue = Queues.CLEANUP.value
    routes = {'cleanup-data': 'cleanup_data'}

    def cleanup_data(self, data):
        return self.handler.cleanup(data)


PROCESSORS = {
    processor.queue: processor
    for processor in (
        EmailProcessor,
        NotificationProcessor,
        BookingProcessor,
        PdfProcessor,
        CleanupProcessor,
    )
}


def get_processor(queue: str, handler: Any = None) -> JobProcessor:
    return PROCESSORS[Queues(queue).value](handler=handler)
