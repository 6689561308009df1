# services/rental-service/src/tests/unit/test_shared.py
"""
Unit Tests for the Shared Library

Cache tags, counter and record stores, middleware and the correlation filter.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
from django.core.exceptions import ValidationError
from django.test import RequestFactory, override_settings
from django.http import HttpResponse

from shared.common.cache import (
    TaggedCache, get_tag_version, revalidate_tag,
    InMemoryCounterStore, CacheCounterStore,
    CacheRecordStore, RedisRecordStore, TAG_VERSION_TTL,
)
from shared.common.constants import CACHE_TTL_SHORT
from shared.common.correlation import (
    CorrelationIdFilter, set_correlation_id, reset_correlation_id, get_correlation_id,
)
from shared.common.middleware import (
    RateLimitMiddleware, CorrelationIDMiddleware, get_client_ip,
)
from shared.common.validators import parse_calendar_date, validate_date_range


class TestTaggedCache:

    def test_round_trip(self):
        tagged = TaggedCache('availability')
        tagged.set(['equipment-availability'], '2099-01-01', value={'available': True})

        assert tagged.get(['equipment-availability'], '2099-01-01') == {'available': True}

    def test_revalidate_hides_entries(self):
        tagged = TaggedCache('availability')
        tags = ['equipment-availability', 'equipment-2099-01-01-2099-01-05']
        tagged.set(tags, 'key', value='cached')

        revalidate_tag('equipment-2099-01-01-2099-01-05')

        assert tagged.get(tags, 'key') is None

    def test_other_tags_unaffected(self):
        tagged = TaggedCache('availability')
        tagged.set(['equipment-2099-02-01-2099-02-03'], 'key', value='cached')

        revalidate_tag('equipment-2099-01-01-2099-01-05')

        assert tagged.get(['equipment-2099-02-01-2099-02-03'], 'key') == 'cached'

    def test_revalidate_unseen_tag(self):
        revalidate_tag('never-read')
        assert get_tag_version('never-read') == 2

    def test_tag_versions_expire(self):
        assert TAG_VERSION_TTL > CACHE_TTL_SHORT * 10

        with patch('shared.common.cache.cache') as mock_cache:
            mock_cache.get.return_value = None
            get_tag_version('equipment-2099-01-01-2099-01-05')

        mock_cache.add.assert_called_once_with(
            'tag-version:equipment-2099-01-01-2099-01-05', 1, timeout=TAG_VERSION_TTL
        )

    def test_revalidate_refreshes_version_ttl(self):
        with patch('shared.common.cache.cache') as mock_cache:
            revalidate_tag('equipment-availability')

        mock_cache.touch.assert_called_once_with(
            'tag-version:equipment-availability', TAG_VERSION_TTL
        )

    def test_revalidate_unseen_tag_sets_ttl(self):
        with patch('shared.common.cache.cache') as mock_cache:
            mock_cache.incr.side_effect = ValueError
            revalidate_tag('never-read')

        mock_cache.set.assert_called_once_with(
            'tag-version:never-read', 2, timeout=TAG_VERSION_TTL
        )


class TestRecordStores:

    def test_cache_store_keeps_newest_first(self):
        store = CacheRecordStore()
        for i in range(4):
            store.push('jobs:email:completed', {'id': i}, limit=3)

        assert [r['id'] for r in store.read('jobs:email:completed')] == [3, 2, 1]

    def test_cache_store_delete(self):
        store = CacheRecordStore()
        store.push('jobs:email:failed', {'id': 1}, limit=3)

        store.delete('jobs:email:failed')

        assert store.read('jobs:email:failed') == []

    def test_redis_store_pushes_and_trims_in_one_transaction(self):
        connection = MagicMock()
        pipe = connection.pipeline.return_value.__enter__.return_value

        with patch('shared.common.cache.get_redis_connection', return_value=connection):
            RedisRecordStore().push('jobs:email:completed', {'id': 'job-1'}, limit=100)

        connection.pipeline.assert_called_once_with(transaction=True)
        pipe.lpush.assert_called_once_with('jobs:email:completed', '{"id": "job-1"}')
        pipe.ltrim.assert_called_once_with('jobs:email:completed', 0, 99)
        pipe.execute.assert_called_once_with()

    def test_redis_store_read(self):
        connection = MagicMock()
        connection.lrange.return_value = [b'{"id": "job-2"}', b'{"id": "job-1"}']

        with patch('shared.common.cache.get_redis_connection', return_value=connection):
            records = RedisRecordStore().read('jobs:email:completed')

        connection.lrange.assert_called_once_with('jobs:email:completed', 0, -1)
        assert records == [{'id': 'job-2'}, {'id': 'job-1'}]

    def test_redis_store_delete(self):
        connection = MagicMock()

        with patch('shared.common.cache.get_redis_connection', return_value=connection):
            RedisRecordStore().delete('jobs:email:completed', 'jobs:email:failed')

        connection.delete.assert_called_once_with('jobs:email:completed', 'jobs:email:failed')


class TestCounterStores:

    @pytest.mark.parametrize('store_class', [InMemoryCounterStore, CacheCounterStore])
    def test_counts_hits_in_window(self, store_class):
        store = store_class()

        counts = [store.hit('ip:10.0.0.1', 900)[0] for _ in range(3)]

        assert counts == [1, 2, 3]

    @pytest.mark.parametrize('store_class', [InMemoryCounterStore, CacheCounterStore])
    def test_keys_are_independent(self, store_class):
        store = store_class()
        store.hit('ip:10.0.0.1', 900)

        assert store.hit('ip:10.0.0.2', 900)[0] == 1

    def test_window_expiry(self):
        store = InMemoryCounterStore()
        with patch('shared.common.cache.time.time', return_value=1000):
            store.hit('ip:10.0.0.1', 60)
            store.hit('ip:10.0.0.1', 60)
        with patch('shared.common.cache.time.time', return_value=1061):
            count, reset_at = store.hit('ip:10.0.0.1', 60)

        assert count == 1
        assert reset_at == 1121


class TestRateLimitMiddleware:

    def setup_method(self):
        self.factory = RequestFactory()

    @override_settings(RATE_LIMIT_REQUESTS=2, RATE_LIMIT_WINDOW=900)
    def test_blocks_after_limit(self):
        middleware = RateLimitMiddleware(lambda request: HttpResponse('ok'), store=InMemoryCounterStore())

        responses = [middleware(self.factory.get('/api/v1/jobs/stats/')) for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 429]
        assert responses[0]['X-RateLimit-Remaining'] == '1'
        assert int(responses[2]['Retry-After']) > 0
        assert b'RATE_LIMITED' in responses[2].content

    @override_settings(RATE_LIMIT_REQUESTS=1)
    def test_non_api_paths_not_limited(self):
        middleware = RateLimitMiddleware(lambda request: HttpResponse('ok'), store=InMemoryCounterStore())

        responses = [middleware(self.factory.get('/health/')) for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)

    @override_settings(RATE_LIMIT_REQUESTS=1)
    def test_limits_per_client_ip(self):
        middleware = RateLimitMiddleware(lambda request: HttpResponse('ok'), store=InMemoryCounterStore())

        first = middleware(self.factory.get('/api/v1/jobs/stats/', REMOTE_ADDR='10.0.0.1'))
        second = middleware(self.factory.get('/api/v1/jobs/stats/', REMOTE_ADDR='10.0.0.2'))

        assert first.status_code == 200
        assert second.status_code == 200

    def test_client_ip_prefers_forwarded_for(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1')
        assert get_client_ip(request) == '203.0.113.7'


class TestCorrelation:

    def test_middleware_sets_context_for_request_only(self):
        seen = {}

        def view(request):
            seen['id'] = get_correlation_id()
            return HttpResponse('ok')

        middleware = CorrelationIDMiddleware(view)
        response = middleware(RequestFactory().get('/', HTTP_X_CORRELATION_ID='req-42'))

        assert seen['id'] == 'req-42'
        assert response['X-Correlation-ID'] == 'req-42'
        assert get_correlation_id() is None

    def test_filter_adds_correlation_id(self):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'msg', None, None)
        token = set_correlation_id('req-7')
        try:
            CorrelationIdFilter().filter(record)
        finally:
            reset_correlation_id(token)

        assert record.correlation_id == 'req-7'

    def test_filter_placeholder_without_request(self):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'msg', None, None)
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == '-'


class TestValidators:

    def test_parse_calendar_date_drops_time(self):
        assert str(parse_calendar_date('2099-01-01T23:59:00Z')) == '2099-01-01'

    def test_parse_calendar_date_rejects_blank(self):
        with pytest.raises(ValidationError):
            parse_calendar_date('  ')

    def test_date_range_limit(self):
        start = parse_calendar_date('2099-01-01')

        validate_date_range(start, parse_calendar_date('2100-01-01'))
        with pytest.raises(ValidationError):
            validate_date_range(start, parse_calendar_date('2100-01-02'))
