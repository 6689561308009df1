# services/rental-service/src/apps/core/jobs/tasks.py
"""
Celery Tasks for the Job Queues

One task per queue. Each task runs the queue's processor, retries with
exponential backoff until the job's attempt limit, and records the final
outcome in the queue's retention ledger.
"""

import logging
from typing import Any, Dict, Optional

from celery import Task, shared_task

from shared.common.constants import DEFAULT_JOB_OPTIONS, Queues

from .history import JobHistory
from .processors import get_processor

logger = logging.getLogger(__name__)


def merge_job_options(options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Overlay per-job options on the defaults."""
    merged = dict(DEFAULT_JOB_OPTIONS)
    merged['backoff'] = dict(DEFAULT_JOB_OPTIONS['backoff'])
    for key, value in (options or {}).items():
        if key == 'backoff' and isinstance(value, dict):
            merged['backoff'].update(value)
        else:
            merged[key] = value
    return merged


def backoff_delay(attempt: int, options: Dict[str, Any]) -> float:
    """
    Seconds to wait before the attempt following ``attempt`` (1-based).

    Exponential: base * 2 ** (attempt - 1). Fixed: base.
    """
    backoff = options.get('backoff') or {}
    base_ms = backoff.get('delay', 0)
    if backoff.get('type', 'exponential') == 'exponential':
        delay_ms = base_ms * 2 ** (attempt - 1)
    else:
        delay_ms = base_ms
    return delay_ms / 1000


def should_retry(attempt: int, options: Dict[str, Any]) -> bool:
    """``attempts`` counts every try, the first one included."""
    return attempt < options.get('attempts', 1)


def run_job(task: Task, job_name: str, data: Dict[str, Any], options: Optional[Dict[str, Any]] = None) -> Any:
    """
    Process one job for ``task.queue_name``.

    Failures are retried through ``task.retry`` while attempts remain, then
    re-raised so the task ends in the failed state.
    """
    options = merge_job_options(options)
    attempt = task.request.retries + 1
    processor = get_processor(task.queue_name)

    try:
        return processor.process(job_name, data)
    except Exception as exc:
        if not should_retry(attempt, options):
            raise
        countdown = backoff_delay(attempt, options)
        logger.warning(
            f"Retrying {task.queue_name} job {job_name} in {countdown}s "
            f"(attempt {attempt} of {options['attempts']}): {exc}"
        )
        raise task.retry(
            exc=exc,
            countdown=countdown,
            max_retries=options['attempts'] - 1,
        )


class QueueJobTask(Task):
    """Base task recording job outcomes in the retention ledger."""

    abstract = True
    queue_name: str = None

    @staticmethod
    def _job_name(args, kwargs) -> str:
        if args:
            return args[0]
        return kwargs.get('job_name', 'unknown')

    def on_success(self, retval, task_id, args, kwargs):
        JobHistory(self.queue_name).record_completed(
            task_id, self._job_name(args, kwargs), retval
        )

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        JobHistory(self.queue_name).record_failed(
            task_id,
            self._job_name(args, kwargs),
            str(exc),
            attempts=self.request.retries + 1,
        )


@shared_task(bind=True, base=QueueJobTask, queue_name=Queues.EMAIL.value)
def process_email_job(self, job_name: str, data: Dict[str, Any], options: Dict[str, Any] = None):
    """Send a booking confirmation, payment receipt or reminder email."""
    return run_job(self, job_name, data, options)


@shared_task(bind=True, base=QueueJobTask, queue_name=Queues.NOTIFICATIONS.value)
def process_notification_job(self, job_name: str, data: Dict[str, Any], options: Dict[str, Any] = None):
    """Deliver a booking notification to a user."""
    return run_job(self, job_name, data, options)


@shared_task(bind=True, base=QueueJobTask, queue_name=Queues.BOOKING_PROCESSING.value)
def process_booking_job(self, job_name: str, data: Dict[str, Any], options: Dict[str, Any] = None):
    """Apply a confirm/cancel/modify action to a booking."""
    return run_job(self, job_name, data, options)


@shared_task(bind=True, base=QueueJobTask, queue_name=Queues.PDF_GENERATION.value)
def process_pdf_job(self, job_name: str, data: Dict[str, Any], options: Dict[str, Any] = None):
    """Render a contract, invoice or receipt."""
    return run_job(self, job_name, data, options)


@shared_task(bind=True, base=QueueJobTask, queue_name=Queues.CLEANUP.value)
def process_cleanup_job(self, job_name: str, data: Dict[str, Any], options: Dict[str, Any] = None):
    """Purge stale data."""
    return run_job(self, job_name, data, options)


QUEUE_TASKS = {
    Queues.EMAIL.value: process_email_job,
    Queues.NOTIFICATIONS.value: process_notification_job,
    Queues.BOOKING_PROCESSING.value: process_booking_job,
    Queues.PDF_GENERATION.value: process_pdf_job,
    Queues.CLEANUP.value: process_cleanup_job,
}
