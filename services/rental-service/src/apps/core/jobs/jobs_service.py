# services/rental-service/src/apps/core/jobs/jobs_service.py
"""
Jobs Service

Enqueue helpers for every queue, with per-job retry options and priority,
plus queue statistics and pause/resume.
"""

import logging
from typing import Any, Dict

from celery import current_app
from django.core.cache import cache

from shared.common.constants import JobPriority, Queues

from .history import JobHistory
from .tasks import QUEUE_TASKS

logger = logging.getLogger(__name__)


class JobsService:
    """
    Service for queueing background jobs.

    Handles:
    - Email, notification, booking, PDF and cleanup jobs
    - Queue statistics
    - Pausing and resuming queue consumption
    """

    EMAIL_OPTIONS = {'attempts': 3, 'backoff': {'type': 'exponential', 'delay': 2000}}
    NOTIFICATION_OPTIONS = {'attempts': 3, 'backoff': {'type': 'exponential', 'delay': 1000}}
    BOOKING_OPTIONS = {'attempts': 3, 'backoff': {'type': 'exponential', 'delay': 2000}}
    PDF_OPTIONS = {'attempts': 2, 'backoff': {'type': 'exponential', 'delay': 3000}}
    CLEANUP_OPTIONS = {'attempts': 2, 'backoff': {'type': 'exponential', 'delay': 5000}}

    def __init__(self, app=None):
        self.app = app or current_app

    def _enqueue(
        self,
        queue: Queues,
        job_name: str,
        data: Dict[str, Any],
        options: Dict[str, Any],
        priority: JobPriority,
    ) -> str:
        task = QUEUE_TASKS[queue.value]
        result = task.apply_async(
            args=[job_name, data],
            kwargs={'options': options},
            queue=queue.value,
            priority=int(priority),
        )
        return result.id

    # ==========================================================================
    # Email jobs
    # ==========================================================================

    def send_booking_confirmation_email(self, email_data: Dict[str, Any]) -> str:
        """
        Queue a booking confirmation email.

        Args:
            email_data: {'to', 'subject', 'template', 'data'}
        """
        try:
            job_id = self._enqueue(
                Queues.EMAIL, 'booking-confirmation', email_data,
                self.EMAIL_OPTIONS, JobPriority.HIGH,
            )
        except Exception:
            logger.exception("Failed to queue booking confirmation email")
            raise
        logger.info(f"Queued booking confirmation email to {email_data.get('to')}")
        return job_id

    def send_payment_receipt_email(self, email_data: Dict[str, Any]) -> str:
        try:
            job_id = self._enqueue(
                Queues.EMAIL, 'payment-receipt', email_data,
                self.EMAIL_OPTIONS, JobPriority.HIGH,
            )
        except Exception:
            logger.exception("Failed to queue payment receipt email")
            raise
        logger.info(f"Queued payment receipt email to {email_data.get('to')}")
        return job_id

    # ==========================================================================
    # Notification jobs
    # ==========================================================================

    def send_booking_notification(self, notification_data: Dict[str, Any]) -> str:
        """
        Queue a user notification.

        Args:
            notification_data: {'userId', 'type', 'data'} where type is one of
                booking_confirmed, payment_received, equipment_ready, reminder
        """
        try:
            job_id = self._enqueue(
                Queues.NOTIFICATIONS, 'booking-notification', notification_data,
                self.NOTIFICATION_OPTIONS, JobPriority.NORMAL,
            )
        except Exception:
            logger.exception("Failed to queue notification")
            raise
        logger.info(f"Queued notification for user {notification_data.get('userId')}")
        return job_id

    # ==========================================================================
    # Booking, PDF and cleanup jobs
    # ==========================================================================

    def process_booking_action(self, booking_data: Dict[str, Any]) -> str:
        """Queue a confirm/cancel/modify action for a booking."""
        try:
            job_id = self._enqueue(
                Queues.BOOKING_PROCESSING, 'process-booking', booking_data,
                self.BOOKING_OPTIONS, JobPriority.HIGH,
            )
        except Exception:
            logger.exception("Failed to queue booking processing")
            raise
        logger.info(f"Queued booking processing for booking {booking_data.get('bookingId')}")
        return job_id

    def generate_pdf(self, pdf_data: Dict[str, Any]) -> str:
        try:
            job_id = self._enqueue(
                Queues.PDF_GENERATION, 'generate-pdf', pdf_data,
                self.PDF_OPTIONS, JobPriority.NORMAL,
            )
        except Exception:
            logger.exception("Failed to queue PDF generation")
            raise
        logger.info(
            f"Queued PDF generation for {pdf_data.get('type')} {pdf_data.get('entityId')}"
        )
        return job_id

    def schedule_cleanup(self, cleanup_data: Dict[str, Any]) -> str:
        try:
            job_id = self._enqueue(
                Queues.CLEANUP, 'cleanup-data', cleanup_data,
                self.CLEANUP_OPTIONS, JobPriority.LOW,
            )
        except Exception:
            logger.exception("Failed to queue cleanup job")
            raise
        logger.info(f"Queued cleanup job for {cleanup_data.get('type')}")
        return job_id

    # ==========================================================================
    # Queue management
    # ==========================================================================

    @staticmethod
    def _queue(queue_name: str) -> Queues:
        from apps.core.services import QueueNotFoundError

        try:
            return Queues(queue_name)
        except ValueError:
            raise QueueNotFoundError(f"Unknown queue: {queue_name}")

    @staticmethod
    def _paused_key(queue: Queues) -> str:
        return f"jobs:{queue.value}:paused"

    def is_paused(self, queue_name: str) -> bool:
        return bool(cache.get(self._paused_key(self._queue(queue_name))))

    def get_queue_stats(self) -> Dict[str, Dict[str, Any]]:
        """Retained job counts and paused flag per queue."""
        stats = {}
        for queue in Queues:
            counts = JobHistory(queue.value).counts()
            counts['paused'] = self.is_paused(queue.value)
            stats[queue.value] = counts
        return stats

    def pause_queue(self, queue_name: str) -> None:
        """Stop workers consuming from a queue. Jobs can still be added."""
        queue = self._queue(queue_name)
        self.app.control.cancel_consumer(queue.value)
        cache.set(self._paused_key(queue), True, timeout=None)
        logger.info(f"Paused queue: {queue.value}")

    def resume_queue(self, queue_name: str) -> None:
        queue = self._queue(queue_name)
        self.app.control.add_consumer(queue.value)
        cache.delete(self._paused_key(queue))
        logger.info(f"Resumed queue: {queue.value}")
