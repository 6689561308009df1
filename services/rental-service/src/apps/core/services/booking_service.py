# services/rental-service/src/apps/core/services/booking_service.py
"""
Booking Service

Orchestrates a booking against the rental API: validation, equipment
lookup, availability check, pricing, creation and cache invalidation.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from shared.common.cache import TaggedCache, revalidate_tag
from shared.common.clients import RentalApiClient, UpstreamAPIError
from shared.common.constants import (
    BookingErrorCode,
    EQUIPMENT_AVAILABILITY_TAG,
    CACHE_TTL_SHORT,
    date_range_tag,
)
from shared.common.validators import parse_calendar_date

from .pricing_service import PricingBreakdown, calculate_pricing
from .validation_service import (
    BookingRequest,
    validate_booking_request,
    first_error,
)

logger = logging.getLogger(__name__)

NO_EQUIPMENT_MESSAGE = "No equipment available. Please contact support."
DATES_UNAVAILABLE_MESSAGE = (
    "Equipment is not available for these dates. Please select different dates."
)
DATES_AVAILABLE_MESSAGE = "Equipment is available for these dates"
BOOKING_FAILED_MESSAGE = "Failed to create booking. Please try again."
AVAILABILITY_FAILED_MESSAGE = "Unable to check availability. Please try again."


@dataclass
class BookingResult:
    """Outcome of a booking attempt."""

    success: bool
    booking_number: Optional[str] = None
    booking: Optional[Dict[str, Any]] = None
    pricing: Optional[PricingBreakdown] = None
    error_code: Optional[BookingErrorCode] = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    alternatives: List[Any] = field(default_factory=list)

    @classmethod
    def failure(cls, code: BookingErrorCode, message: str, **kwargs) -> 'BookingResult':
        return cls(success=False, error_code=code, error=message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {
                'success': True,
                'bookingNumber': self.booking_number,
                'pricing': self.pricing.to_dict() if self.pricing else None,
            }

        data = {
            'success': False,
            'errorCode': self.error_code.value if self.error_code else None,
            'error': self.error,
        }
        if self.field_errors:
            data['fieldErrors'] = self.field_errors
        if self.alternatives:
            data['alternatives'] = self.alternatives
        return data


def _data(response: Any) -> Dict[str, Any]:
    if isinstance(response, dict) and isinstance(response.get('data'), dict):
        return response['data']
    return {}


class BookingService:
    """
    Service for creating bookings through the rental API.

    Handles:
    - Full request validation
    - Equipment selection and date availability
    - Pricing
    - Booking creation and availability cache invalidation
    """

    def __init__(self, client: RentalApiClient = None):
        self.client = client or RentalApiClient()
        self.availability_cache = TaggedCache('availability', timeout=CACHE_TTL_SHORT)

    # ==========================================================================
    # Booking
    # ==========================================================================

    async def create_booking(self, request: BookingRequest) -> BookingResult:
        """
        Create a booking.

        Never raises: every failure comes back as a BookingResult with an
        error code.
        """
        try:
            return await self._create_booking(request)
        except Exception:
            logger.exception("Booking creation error")
            return BookingResult.failure(
                BookingErrorCode.INTERNAL_ERROR, BOOKING_FAILED_MESSAGE
            )

    async def _create_booking(self, request: BookingRequest) -> BookingResult:
        # Server-side re-check of every field, date order and span included
        field_errors = validate_booking_request(request)
        if field_errors:
            return BookingResult.failure(
                BookingErrorCode.VALIDATION_ERROR,
                first_error(field_errors),
                field_errors=field_errors,
            )

        equipment = await self._first_available_equipment()
        if equipment is None:
            return BookingResult.failure(
                BookingErrorCode.NO_EQUIPMENT_AVAILABLE, NO_EQUIPMENT_MESSAGE
            )

        equipment_id = equipment['id']
        availability = _data(await self.client.check_availability(
            equipment_id, request.start_date, request.end_date
        ))
        if not availability.get('available'):
            return BookingResult.failure(
                BookingErrorCode.DATES_UNAVAILABLE,
                DATES_UNAVAILABLE_MESSAGE,
                alternatives=availability.get('alternatives') or [],
            )

        pricing = calculate_pricing(
            request.start_date,
            request.end_date,
            request.delivery_city,
            daily_rate=equipment.get('dailyRate'),
        )

        try:
            response = await self.client.create_booking({
                'equipmentId': equipment_id,
                'startDate': request.start_date,
                'endDate': request.end_date,
                'deliveryAddress': request.delivery_address,
                'deliveryCity': request.delivery_city,
            })
        except UpstreamAPIError as e:
            if e.status_code is None:
                raise
            logger.warning(f"Rental API rejected booking: {e.message}")
            return BookingResult.failure(BookingErrorCode.BOOKING_FAILED, e.message)

        if not response.get('success'):
            return BookingResult.failure(
                BookingErrorCode.BOOKING_FAILED,
                response.get('message') or BOOKING_FAILED_MESSAGE,
            )

        booking = _data(response)

        revalidate_tag(EQUIPMENT_AVAILABILITY_TAG)
        revalidate_tag(date_range_tag(
            parse_calendar_date(request.start_date).isoformat(),
            parse_calendar_date(request.end_date).isoformat(),
        ))

        logger.info(
            f"Created booking {booking.get('bookingNumber')} for equipment {equipment_id}"
        )

        return BookingResult(
            success=True,
            booking_number=booking.get('bookingNumber'),
            booking=booking,
            pricing=pricing,
        )

    # ==========================================================================
    # Availability
    # ==========================================================================

    async def check_availability(self, start_date: str, end_date: str) -> Dict[str, Any]:
        """
        Check whether equipment is available for a date range.

        Results are cached under the availability tags, so a successful
        booking invalidates them.
        """
        tags = [EQUIPMENT_AVAILABILITY_TAG, date_range_tag(start_date, end_date)]
        cached = self.availability_cache.get(tags, start_date, end_date)
        if cached is not None:
            return cached

        try:
            equipment = await self._first_available_equipment()
            if equipment is None:
                return {
                    'available': False,
                    'message': NO_EQUIPMENT_MESSAGE,
                    'equipmentId': None,
                    'alternatives': [],
                }

            availability = _data(await self.client.check_availability(
                equipment['id'], start_date, end_date
            ))
        except UpstreamAPIError:
            logger.exception("Availability check error")
            return {
                'available': False,
                'message': AVAILABILITY_FAILED_MESSAGE,
                'equipmentId': None,
                'alternatives': [],
            }

        available = bool(availability.get('available'))
        result = {
            'available': available,
            'message': DATES_AVAILABLE_MESSAGE if available else DATES_UNAVAILABLE_MESSAGE,
            'equipmentId': equipment['id'],
            'alternatives': availability.get('alternatives') or [],
        }
        self.availability_cache.set(tags, start_date, end_date, value=result)
        return result

    async def _first_available_equipment(self) -> Optional[Dict[str, Any]]:
        response = await self.client.get_equipment_list(available=True, limit=1)
        equipment = _data(response).get('equipment') or []
        return equipment[0] if equipment else None
