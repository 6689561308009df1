# services/rental-service/src/apps/core/services/__init__.py
"""
Rental Service Business Logic
"""

from .booking_service import BookingService, BookingResult
from .pricing_service import PricingBreakdown, calculate_pricing
from .validation_service import (
    BookingRequest,
    validate_dates_step,
    validate_address_step,
    validate_booking_request,
    validate_step,
    clear_field_error,
)


# Custom Exceptions
class RentalServiceError(Exception):
    """Base exception for rental service errors."""
    pass


class UnknownJobError(RentalServiceError):
    """Job name not handled by the queue's processor."""

    def __init__(self, queue: str, job_name: str):
        super().__init__(f"Unknown job type: {job_name} (queue {queue})")
        self.queue = queue
        self.job_name = job_name


class QueueNotFoundError(RentalServiceError, ValueError):
    """Queue name not configured."""
    pass


__all__ = [
    # Services
    'BookingService',
    'BookingResult',
    'PricingBreakdown',
    'calculate_pricing',
    'BookingRequest',
    'validate_dates_step',
    'validate_address_step',
    'validate_booking_request',
    'validate_step',
    'clear_field_error',

    # Exceptions
    'RentalServiceError',
    'UnknownJobError',
    'QueueNotFoundError',
]
