"""Base settings for Rental Service."""
import os
import sys
from pathlib import Path

from kombu import Queue

BASE_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(BASE_DIR.parent.parent.parent))

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'apps.core',
]

MIDDLEWARE = [
    'shared.common.middleware.CorrelationIDMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'shared.common.middleware.SecurityHeadersMiddleware',
    'shared.common.middleware.RateLimitMiddleware',
    'shared.common.middleware.LoggingMiddleware',
]

ROOT_URLCONF = 'config.urls'
TEMPLATES = [{'BACKEND': 'django.template.backends.django.DjangoTemplates', 'DIRS': [], 'APP_DIRS': True, 'OPTIONS': {'context_processors': ['django.template.context_processors.debug', 'django.template.context_processors.request']}}]
WSGI_APPLICATION = 'config.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'udigit_rentals'),
        'USER': os.environ.get('DB_USER', 'rental_service_user'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'rental_service_password'),
        'HOST': os.environ.get('DB_HOST', 'postgres'),
        'PORT': os.environ.get('DB_PORT', '5432'),
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'America/Moncton')
USE_I18N = True
USE_TZ = True
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
    'EXCEPTION_HANDLER': 'shared.common.exceptions.custom_exception_handler',
}

CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOW_HEADERS = ['accept', 'content-type', 'authorization', 'x-correlation-id']
CORS_EXPOSE_HEADERS = ['x-correlation-id', 'retry-after']

# Redis
REDIS_HOST = os.environ.get('REDIS_HOST', 'redis')
REDIS_PORT = int(os.environ.get('REDIS_PORT', '6379'))
REDIS_PASSWORD = os.environ.get('REDIS_PASSWORD', '')
REDIS_DB = int(os.environ.get('REDIS_DB', '0'))
REDIS_URL = os.environ.get(
    'REDIS_URL',
    f"redis://{':' + REDIS_PASSWORD + '@' if REDIS_PASSWORD else ''}{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"
)
CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'KEY_PREFIX': 'udigit',
        'TIMEOUT': 300,
        'OPTIONS': {
            'SOCKET_CONNECT_TIMEOUT': 10,
            'SOCKET_TIMEOUT': 5,
        },
    }
}

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', REDIS_URL)
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', REDIS_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 300  # 5 minutes
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_WORKER_CONCURRENCY = int(os.environ.get('CELERY_WORKER_CONCURRENCY', '4'))
CELERY_BROKER_TRANSPORT_OPTIONS = {'priority_steps': list(range(11)), 'queue_order_strategy': 'priority'}
CELERY_TASK_DEFAULT_PRIORITY = 5

# One broker queue per job family; pin workers with -Q email,notifications
JOB_QUEUES = ['email', 'notifications', 'booking-processing', 'pdf-generation', 'cleanup']
CELERY_TASK_QUEUES = [Queue(name) for name in JOB_QUEUES]
CELERY_TASK_DEFAULT_QUEUE = 'booking-processing'
CELERY_TASK_ROUTES = {
    'apps.core.jobs.tasks.process_email_job': {'queue': 'email'},
    'apps.core.jobs.tasks.process_notification_job': {'queue': 'notifications'},
    'apps.core.jobs.tasks.process_booking_job': {'queue': 'booking-processing'},
    'apps.core.jobs.tasks.process_pdf_job': {'queue': 'pdf-generation'},
    'apps.core.jobs.tasks.process_cleanup_job': {'queue': 'cleanup'},
}

# Job handlers (one capability per queue)
JOB_HANDLERS = {
    'email': 'apps.core.jobs.handlers.LoggingEmailSender',
    'notifications': 'apps.core.jobs.handlers.LoggingPushNotifier',
    'booking-processing': 'apps.core.jobs.handlers.LoggingBookingActionHandler',
    'pdf-generation': 'apps.core.jobs.handlers.LoggingPdfRenderer',
    'cleanup': 'apps.core.jobs.handlers.LoggingCleanupRunner',
}
JOB_STUB_DELAYS = {
    'email': 1.0,
    'notifications': 0.5,
    'booking-processing': 1.5,
    'pdf-generation': 2.0,
    'cleanup': 1.0,
}

# Rental API
RENTAL_API_URL = os.environ.get('RENTAL_API_URL', 'http://localhost:3001')
APP_VERSION = os.environ.get('APP_VERSION', '1.0.0')

# Rate limiting (API routes)
RATE_LIMIT_REQUESTS = int(os.environ.get('RATE_LIMIT_REQUESTS', '100'))
RATE_LIMIT_WINDOW = int(os.environ.get('RATE_LIMIT_WINDOW', '900'))
RATE_LIMIT_STORE = os.environ.get('RATE_LIMIT_STORE', 'shared.common.cache.CacheCounterStore')

# Job retention ledger
JOB_HISTORY_STORE = os.environ.get('JOB_HISTORY_STORE', 'shared.common.cache.RedisRecordStore')

# Health
HEALTH_MEMORY_LIMIT_MB = int(os.environ.get('HEALTH_MEMORY_LIMIT_MB', '300'))

SERVICE_NAME = 'rental-service'
SERVICE_PORT = 8000

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {'correlation_id': {'()': 'shared.common.correlation.CorrelationIdFilter'}},
    'formatters': {'json': {'()': 'pythonjsonlogger.jsonlogger.JsonFormatter', 'fmt': '%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s'}},
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'json', 'filters': ['correlation_id']}},
    'root': {'handlers': ['console'], 'level': os.environ.get('LOG_LEVEL', 'INFO')},
}
