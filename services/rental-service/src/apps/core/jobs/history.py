# services/rental-service/src/apps/core/jobs/history.py
"""
Job Retention Ledger

Keeps the most recent completed and failed job records per queue, trimmed
to the retention limits of the job options. Records live in the
RecordStore named by ``JOB_HISTORY_STORE``.
"""

import logging
from typing import Any, Dict, List

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from shared.common.cache import RecordStore
from shared.common.constants import DEFAULT_JOB_OPTIONS, Queues

logger = logging.getLogger(__name__)

COMPLETED = 'completed'
FAILED = 'failed'


def get_record_store() -> RecordStore:
    store_path = getattr(
        settings, 'JOB_HISTORY_STORE', 'shared.common.cache.RedisRecordStore'
    )
    return import_string(store_path)()


class JobHistory:
    """Completed/failed job records for one queue, newest first."""

    def __init__(
        self,
        queue: str,
        keep_completed: int = DEFAULT_JOB_OPTIONS['remove_on_complete'],
        keep_failed: int = DEFAULT_JOB_OPTIONS['remove_on_fail'],
        store: RecordStore = None,
    ):
        self.queue = Queues(queue).value
        self.limits = {COMPLETED: keep_completed, FAILED: keep_failed}
        self.store = store or get_record_store()

    def _key(self, state: str) -> str:
        return f"jobs:{self.queue}:{state}"

    def record_completed(self, job_id: str, job_name: str, result: Any = None) -> None:
        self.store.push(self._key(COMPLETED), {
            'id': job_id,
            'name': job_name,
            'result': result,
            'finished_at': timezone.now().isoformat(),
        }, self.limits[COMPLETED])

    def record_failed(self, job_id: str, job_name: str, error: str, attempts: int) -> None:
        logger.error(f"Job {job_name} ({job_id}) failed after {attempts} attempts: {error}")
        self.store.push(self._key(FAILED), {
            'id': job_id,
            'name': job_name,
            'error': error,
            'attempts': attempts,
            'failed_at': timezone.now().isoformat(),
        }, self.limits[FAILED])

    def completed(self) -> List[Dict[str, Any]]:
        return self.store.read(self._key(COMPLETED))

    def failed(self) -> List[Dict[str, Any]]:
        return self.store.read(self._key(FAILED))

    def counts(self) -> Dict[str, int]:
        return {COMPLETED: len(self.completed()), FAILED: len(self.failed())}

    def clear(self) -> None:
        self.store.delete(self._key(COMPLETED), self._key(FAILED))
