# services/rental-service/src/config/settings/testing.py
"""
Testing settings for Rental Service.
"""

from .base import *

# Testing mode
DEBUG = False
TESTING = True

# Use in-memory SQLite for tests
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Celery
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

# Cache
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

RENTAL_API_URL = 'http://rental-api.test'

# Stub handlers return immediately
JOB_STUB_DELAYS = {queue: 0 for queue in JOB_STUB_DELAYS}

RATE_LIMIT_STORE = 'shared.common.cache.InMemoryCounterStore'
JOB_HISTORY_STORE = 'shared.common.cache.CacheRecordStore'

# Logging - minimal for tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
