"""Rental Service Views."""
import logging

from asgiref.sync import async_to_sync
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from shared.common.constants import BookingErrorCode, CURRENCY
from shared.common.exceptions import ValidationException
from shared.common.validators import parse_calendar_date

from .jobs.jobs_service import JobsService
from .serializers import (
    BookingRequestSerializer, ValidateStepSerializer,
    PricingQuoteSerializer, AvailabilityQuerySerializer,
)
from .services import (
    BookingService, BookingRequest, calculate_pricing,
    validate_dates_step, validate_step,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    BookingErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    BookingErrorCode.NO_EQUIPMENT_AVAILABLE: status.HTTP_409_CONFLICT,
    BookingErrorCode.DATES_UNAVAILABLE: status.HTTP_409_CONFLICT,
    BookingErrorCode.BOOKING_FAILED: status.HTTP_502_BAD_GATEWAY,
    BookingErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class BookingViewSet(viewsets.ViewSet):

    def create(self, request):
        """Create a booking through the rental API."""
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking_request = serializer.to_booking_request()

        result = async_to_sync(BookingService().create_booking)(booking_request)
        if not result.success:
            return Response(result.to_dict(), status=ERROR_STATUS[result.error_code])

        self._queue_confirmation(booking_request, result)
        return Response(result.to_dict(), status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def validate(self, request):
        """Validate one step of the booking wizard."""
        serializer = ValidateStepSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        errors = validate_step(
            serializer.validated_data['step'], serializer.to_booking_request()
        )
        return Response({'valid': not errors, 'errors': errors})

    @staticmethod
    def _queue_confirmation(booking_request: BookingRequest, result) -> None:
        try:
            JobsService().send_booking_confirmation_email({
                'to': booking_request.customer_email,
                'subject': f"Booking confirmation {result.booking_number}",
                'template': 'booking-confirmation',
                'data': {
                    'customerName': booking_request.customer_name,
                    'bookingNumber': result.booking_number,
                    'startDate': booking_request.start_date,
                    'endDate': booking_request.end_date,
                    'total': result.pricing.to_dict()['total'] if result.pricing else None,
                },
            })
        except Exception:
            logger.exception(f"Failed to queue confirmation for booking {result.booking_number}")


class PricingViewSet(viewsets.ViewSet):

    @action(detail=False, methods=['get'])
    def quote(self, request):
        """Price a rental without booking it."""
        serializer = PricingQuoteSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        errors = validate_dates_step(BookingRequest(
            start_date=data['startDate'], end_date=data['endDate']
        ))
        if errors:
            raise ValidationException(errors)

        pricing = calculate_pricing(data['startDate'], data['endDate'], data['deliveryCity'])
        return Response({
            'success': True,
            'data': {
                **pricing.to_dict(),
                'currency': CURRENCY,
                'formatted': pricing.formatted(),
            },
        })


class AvailabilityViewSet(viewsets.ViewSet):

    def list(self, request):
        """Check availability for a date range; dates are normalized to ISO."""
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        start_date = serializer.validated_data['startDate']
        end_date = serializer.validated_data['endDate']

        errors = validate_dates_step(BookingRequest(start_date=start_date, end_date=end_date))
        if errors:
            detail = None
            if not start_date or not end_date:
                detail = 'startDate and endDate are required'
            raise ValidationException(errors, detail=detail)

        result = async_to_sync(BookingService().check_availability)(
            parse_calendar_date(start_date).isoformat(),
            parse_calendar_date(end_date).isoformat(),
        )
        return Response(result)


class JobsViewSet(viewsets.ViewSet):

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Retained job counts per queue."""
        return Response({'success': True, 'data': JobsService().get_queue_stats()})
