"""
Shared Constants Module.

Common constants used across the U-Dig It Rentals services.
"""
from decimal import Decimal
from enum import Enum
from typing import Dict, Any


# =============================================================================
# SYSTEM CONSTANTS
# =============================================================================

# Cache TTL (seconds)
CACHE_TTL_SHORT = 60  # 1 minute

# Rate Limiting
RATE_LIMIT_REQUESTS = 100
RATE_LIMIT_WINDOW_SECONDS = 900  # 15 minutes

# Correlation header used between the site and the rental API
CORRELATION_ID_HEADER = "X-Correlation-ID"


# =============================================================================
# RENTAL PRICING
# =============================================================================

DEFAULT_DAILY_RATE = Decimal("350")
TAX_RATE = Decimal("0.15")  # 15% HST
FLOAT_FEE = Decimal("150")
MAX_RENTAL_DAYS = 365
CURRENCY = "CAD"


# =============================================================================
# BOOKINGS
# =============================================================================

class BookingStatus(str, Enum):
    """Booking status as reported by the rental API."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingErrorCode(str, Enum):
    """Failure codes carried by a booking result."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_EQUIPMENT_AVAILABLE = "NO_EQUIPMENT_AVAILABLE"
    DATES_UNAVAILABLE = "DATES_UNAVAILABLE"
    BOOKING_FAILED = "BOOKING_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Cache tags invalidated after a booking is created
EQUIPMENT_AVAILABILITY_TAG = "equipment-availability"


def date_range_tag(start_date: str, end_date: str) -> str:
    """Cache tag scoped to a single requested date range."""
    return f"equipment-{start_date}-{end_date}"


# =============================================================================
# JOB QUEUES
# =============================================================================

class Queues(str, Enum):
    """Named job queues."""
    EMAIL = "email"
    NOTIFICATIONS = "notifications"
    BOOKING_PROCESSING = "booking-processing"
    PDF_GENERATION = "pdf-generation"
    CLEANUP = "cleanup"


class JobPriority(int, Enum):
    """Job priorities (lower runs first)."""
    HIGH = 1
    NORMAL = 5
    LOW = 10


DEFAULT_JOB_OPTIONS: Dict[str, Any] = {
    "attempts": 3,
    "backoff": {
        "type": "exponential",
        "delay": 1000,  # milliseconds
    },
    "remove_on_complete": 100,
    "remove_on_fail": 50,
}
