# Shared Common Library for U-Dig It Rentals
# This package contains the rental API client, health checks, middleware
# and other common components used by the rental services.
#
# Only settings-safe modules are re-exported here; the package is imported
# while Django settings and logging are still being configured.

__version__ = "1.0.0"

# Export commonly used components
from .constants import (
    BookingStatus,
    BookingErrorCode,
    Queues,
    JobPriority,
    DEFAULT_JOB_OPTIONS,
)

from .correlation import (
    get_correlation_id,
    set_correlation_id,
    CorrelationIdFilter,
)

from .validators import (
    parse_calendar_date,
    validate_date_range,
)

__all__ = [
    # Version
    '__version__',

    # Constants
    'BookingStatus',
    'BookingErrorCode',
    'Queues',
    'JobPriority',
    'DEFAULT_JOB_OPTIONS',

    # Correlation
    'get_correlation_id',
    'set_correlation_id',
    'CorrelationIdFilter',

    # Validators
    'parse_calendar_date',
    'validate_date_range',
]
