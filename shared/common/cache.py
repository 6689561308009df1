# shared/common/cache.py
"""
Tagged Caching and Counter Stores
"""

import json
import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple
from django.core.cache import cache
from django_redis import get_redis_connection

logger = logging.getLogger(__name__)


# =============================================================================
# TAGGED CACHE
# =============================================================================

# Must outlive any entry cached under a tag, or an expired version could
# make stale entries reachable again
TAG_VERSION_TTL = 60 * 60 * 24


def _tag_version_key(tag: str) -> str:
    return f"tag-version:{tag}"


def get_tag_version(tag: str) -> int:
    """Current version of a cache tag, starting at 1."""
    key = _tag_version_key(tag)
    version = cache.get(key)
    if version is None:
        cache.add(key, 1, timeout=TAG_VERSION_TTL)
        version = cache.get(key) or 1
    return version


def revalidate_tag(tag: str) -> None:
    """
    Invalidate every entry cached under ``tag``.

    Entries are never deleted; bumping the tag version makes their keys
    unreachable and they expire on their own TTL. The version key itself
    lives for TAG_VERSION_TTL after the last revalidation.
    """
    key = _tag_version_key(tag)
    try:
        cache.incr(key)
        cache.touch(key, TAG_VERSION_TTL)
    except ValueError:
        # Tag never read before, any value above the default of 1 will do
        cache.set(key, 2, timeout=TAG_VERSION_TTL)
    logger.info(f"Revalidated cache tag {tag}")


class TaggedCache:
    """
    Cache wrapper whose keys embed the versions of the tags they depend on.

    Usage:
        availability_cache = TaggedCache('availability', timeout=300)
        tags = ['equipment-availability', 'equipment-2025-09-01-2025-09-04']
        value = availability_cache.get(tags, '2025-09-01', '2025-09-04')
    """

    def __init__(self, prefix: str, timeout: int = 300):
        self.prefix = prefix
        self.timeout = timeout

    def build_key(self, tags: Iterable[str], *parts: Any) -> str:
        versions = ':'.join(f"{tag}@{get_tag_version(tag)}" for tag in tags)
        key_parts = ':'.join(str(p) for p in parts)
        return f"{self.prefix}:{key_parts}:{versions}"

    def get(self, tags: Iterable[str], *parts: Any) -> Optional[Any]:
        return cache.get(self.build_key(tags, *parts))

    def set(self, tags: Iterable[str], *parts: Any, value: Any) -> None:
        cache.set(self.build_key(tags, *parts), value, timeout=self.timeout)


# =============================================================================
# COUNTER STORES
# =============================================================================

class CounterStore:
    """
    Fixed-window hit counter used by the rate limiter.
    """

    def hit(self, key: str, window: int) -> Tuple[int, int]:
        """
        Record one hit for ``key``.

        Returns:
            Tuple of (hits in the current window, reset timestamp)
        """
        raise NotImplementedError


class InMemoryCounterStore(CounterStore):
    """
    Process-local counters. Only valid for a single-instance deployment.
    """

    def __init__(self):
        self._counters: Dict[str, Dict[str, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, window: int) -> Tuple[int, int]:
        now = int(time.time())
        with self._lock:
            entry = self._counters.get(key)
            if entry is None or entry['reset_at'] <= now:
                entry = {'count': 0, 'reset_at': now + window}
                self._counters[key] = entry
            entry['count'] += 1

            # Drop expired windows of other clients
            if len(self._counters) > 10000:
                self._counters = {
                    k: v for k, v in self._counters.items() if v['reset_at'] > now
                }
            return entry['count'], entry['reset_at']


class CacheCounterStore(CounterStore):
    """
    Counters kept in the Django cache (Redis in production), shared by every
    instance that points at the same cache.
    """

    def hit(self, key: str, window: int) -> Tuple[int, int]:
        now = int(time.time())
        bucket = now // window
        window_key = f"rate-limit:{key}:{bucket}"

        cache.add(window_key, 0, timeout=window * 2)
        try:
            count = cache.incr(window_key)
        except ValueError:
            # Evicted between add and incr
            cache.set(window_key, 1, timeout=window * 2)
            count = 1

        return count, (bucket + 1) * window


# =============================================================================
# RECORD STORES
# =============================================================================

class RecordStore:
    """
    Capped lists of records, newest first.
    """

    def push(self, key: str, record: Dict[str, Any], limit: int) -> None:
        """Prepend ``record`` and keep only the newest ``limit`` records."""
        raise NotImplementedError

    def read(self, key: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def delete(self, *keys: str) -> None:
        raise NotImplementedError


class CacheRecordStore(RecordStore):
    """
    Lists kept as whole values in the Django cache.

    Writes are serialized per process only; use RedisRecordStore when more
    than one worker process records to the same list.
    """

    _lock = threading.Lock()

    def push(self, key: str, record: Dict[str, Any], limit: int) -> None:
        with self._lock:
            records = cache.get(key) or []
            records.insert(0, record)
            cache.set(key, records[:limit], timeout=None)

    def read(self, key: str) -> List[Dict[str, Any]]:
        return cache.get(key) or []

    def delete(self, *keys: str) -> None:
        cache.delete_many(keys)


class RedisRecordStore(RecordStore):
    """
    Native Redis lists; LPUSH and LTRIM run in one MULTI/EXEC so concurrent
    workers never overwrite each other's records.
    """

    def __init__(self, alias: str = 'default'):
        self.alias = alias

    @property
    def connection(self):
        return get_redis_connection(self.alias)

    def push(self, key: str, record: Dict[str, Any], limit: int) -> None:
        with self.connection.pipeline(transaction=True) as pipe:
            pipe.lpush(key, json.dumps(record, default=str))
            pipe.ltrim(key, 0, limit - 1)
            pipe.execute()

    def read(self, key: str) -> List[Dict[str, Any]]:
        return [json.loads(item) for item in self.connection.lrange(key, 0, -1)]

    def delete(self, *keys: str) -> None:
        self.connection.delete(*keys)
