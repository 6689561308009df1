# services/rental-service/src/tests/integration/test_api.py
"""
Integration Tests for the Rental API

Full request/response cycle through the middleware stack. The rental API
client is mocked at the orchestration boundary.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from django.core.cache import cache
from rest_framework import status
from rest_framework.test import APIClient

from shared.common.constants import BookingErrorCode
from apps.core.jobs.history import JobHistory
from apps.core.services import BookingResult, calculate_pricing


def booking_service_returning(result):
    service = MagicMock()
    service.create_booking = AsyncMock(return_value=result)
    return MagicMock(return_value=service)


class TestCreateBookingAPI:
    """Tests for POST /api/v1/bookings/."""

    url = '/api/v1/bookings/'

    def setup_method(self):
        self.client = APIClient()

    def test_create_booking_end_to_end(self, booking_payload, rental_client):
        """Test a booking through the real orchestration and eager email job."""
        with patch(
            'apps.core.services.booking_service.RentalApiClient',
            return_value=rental_client,
        ):
            response = self.client.post(self.url, booking_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert response.data['bookingNumber'] == 'UDR-2099-0001'
        assert response.data['pricing']['total'] == 1530.0

        completed = JobHistory('email').completed()
        assert completed[0]['name'] == 'booking-confirmation'
        assert completed[0]['result']['to'] == 'jane@example.com'

    def test_validation_error(self, booking_payload):
        booking_payload['customerEmail'] = 'nope'

        response = self.client.post(self.url, booking_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['errorCode'] == 'VALIDATION_ERROR'
        assert response.data['fieldErrors'] == {'customerEmail': 'Valid email is required'}

    @pytest.mark.parametrize('code,expected_status', [
        (BookingErrorCode.NO_EQUIPMENT_AVAILABLE, status.HTTP_409_CONFLICT),
        (BookingErrorCode.DATES_UNAVAILABLE, status.HTTP_409_CONFLICT),
        (BookingErrorCode.BOOKING_FAILED, status.HTTP_502_BAD_GATEWAY),
        (BookingErrorCode.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR),
    ])
    def test_failure_status_codes(self, booking_payload, code, expected_status):
        result = BookingResult.failure(code, 'Something went wrong')

        with patch('apps.core.views.BookingService', booking_service_returning(result)):
            response = self.client.post(self.url, booking_payload, format='json')

        assert response.status_code == expected_status
        assert response.data == {
            'success': False,
            'errorCode': code.value,
            'error': 'Something went wrong',
        }

    def test_dates_unavailable_returns_alternatives(self, booking_payload):
        alternatives = [{'startDate': '2099-03-05', 'endDate': '2099-03-08'}]
        result = BookingResult.failure(
            BookingErrorCode.DATES_UNAVAILABLE, 'Unavailable', alternatives=alternatives
        )

        with patch('apps.core.views.BookingService', booking_service_returning(result)):
            response = self.client.post(self.url, booking_payload, format='json')

        assert response.data['alternatives'] == alternatives

    def test_queueing_failure_does_not_fail_booking(self, booking_payload):
        result = BookingResult(
            success=True,
            booking_number='UDR-2099-0002',
            pricing=calculate_pricing('2099-03-01', '2099-03-04', 'Saint John'),
        )
        jobs_service = MagicMock()
        jobs_service.return_value.send_booking_confirmation_email.side_effect = (
            ConnectionError('broker down')
        )

        with patch('apps.core.views.BookingService', booking_service_returning(result)), \
                patch('apps.core.views.JobsService', jobs_service):
            response = self.client.post(self.url, booking_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['pricing']['total'] == float(Decimal('1357.5'))

    def test_correlation_id_echoed(self, booking_payload):
        booking_payload['customerName'] = ''

        response = self.client.post(
            self.url, booking_payload, format='json', HTTP_X_CORRELATION_ID='req-123'
        )

        assert response['X-Correlation-ID'] == 'req-123'
        assert response['X-Content-Type-Options'] == 'nosniff'
        assert 'X-RateLimit-Limit' in response


class TestValidateStepAPI:
    """Tests for POST /api/v1/bookings/validate/."""

    url = '/api/v1/bookings/validate/'

    def setup_method(self):
        self.client = APIClient()

    def test_dates_step(self):
        response = self.client.post(
            self.url,
            {'step': 'dates', 'startDate': '2099-01-05', 'endDate': '2099-01-02'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            'valid': False,
            'errors': {'endDate': 'End date must be after start date'},
        }

    def test_address_step_valid(self):
        response = self.client.post(
            self.url,
            {'step': 'address', 'deliveryAddress': '1 King St', 'deliveryCity': 'Moncton'},
            format='json',
        )

        assert response.data == {'valid': True, 'errors': {}}

    def test_defaults_to_full_validation(self, booking_payload):
        response = self.client.post(self.url, booking_payload, format='json')
        assert response.data['valid'] is True

    def test_unknown_step(self):
        response = self.client.post(self.url, {'step': 'payment'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'VALIDATION_ERROR'


class TestPricingQuoteAPI:
    """Tests for GET /api/v1/pricing/quote/."""

    url = '/api/v1/pricing/quote/'

    def setup_method(self):
        self.client = APIClient()

    def test_quote(self):
        response = self.client.get(self.url, {
            'startDate': '2099-01-01', 'endDate': '2099-01-02', 'deliveryCity': '',
        })

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['days'] == 1
        assert data['total'] == 402.5
        assert data['formatted']['taxes'] == '52.50'

    def test_quote_with_delivery(self):
        response = self.client.get(self.url, {
            'startDate': '2099-01-01', 'endDate': '2099-01-04', 'deliveryCity': 'Saint John',
        })

        assert response.data['data']['floatFee'] == 150.0
        assert response.data['data']['total'] == 1357.5

    def test_invalid_dates(self):
        response = self.client.get(self.url, {'startDate': '2099-01-04', 'endDate': '2099-01-01'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['message'] == 'End date must be after start date'
        assert response.data['error']['details'] == {
            'endDate': 'End date must be after start date',
        }

    def test_missing_dates(self):
        response = self.client.get(self.url)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAvailabilityAPI:
    """Tests for GET /api/v1/availability/."""

    url = '/api/v1/availability/'

    def setup_method(self):
        self.client = APIClient()

    def test_requires_both_dates(self):
        response = self.client.get(self.url, {'startDate': '2099-01-01'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['message'] == 'startDate and endDate are required'
        assert response.data['error']['details'] == {'endDate': 'End date is required'}

    def test_rejects_unparseable_dates(self, rental_client):
        with patch(
            'apps.core.services.booking_service.RentalApiClient',
            return_value=rental_client,
        ):
            response = self.client.get(self.url, {'startDate': 'garbage', 'endDate': 'x' * 200})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['details'] == {
            'startDate': 'Start date must be a valid date',
            'endDate': 'End date must be a valid date',
        }
        rental_client.check_availability.assert_not_awaited()
        assert cache.get('tag-version:equipment-garbage-' + 'x' * 200) is None

    def test_rejects_reversed_range(self, rental_client):
        with patch(
            'apps.core.services.booking_service.RentalApiClient',
            return_value=rental_client,
        ):
            response = self.client.get(self.url, {
                'startDate': '2099-01-04', 'endDate': '2099-01-01',
            })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['message'] == 'End date must be after start date'
        rental_client.get_equipment_list.assert_not_awaited()

    def test_available(self, rental_client):
        with patch(
            'apps.core.services.booking_service.RentalApiClient',
            return_value=rental_client,
        ):
            response = self.client.get(self.url, {
                'startDate': '2099-01-01', 'endDate': '2099-01-04',
            })

        assert response.status_code == status.HTTP_200_OK
        assert response.data['available'] is True
        assert response.data['equipmentId'] == 'eq-1'

    def test_dates_normalized_to_calendar_days(self, rental_client):
        with patch(
            'apps.core.services.booking_service.RentalApiClient',
            return_value=rental_client,
        ):
            response = self.client.get(self.url, {
                'startDate': '2099-01-01T09:30:00', 'endDate': '2099-01-04T17:00:00',
            })

        assert response.status_code == status.HTTP_200_OK
        rental_client.check_availability.assert_awaited_once_with(
            'eq-1', '2099-01-01', '2099-01-04'
        )
        assert cache.get('tag-version:equipment-2099-01-01-2099-01-04') == 1


class TestJobsStatsAPI:

    def test_stats(self):
        JobHistory('email').record_completed('job-1', 'booking-confirmation')

        response = APIClient().get('/api/v1/jobs/stats/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['email']['completed'] == 1
        assert response.data['data']['cleanup'] == {'completed': 0, 'failed': 0, 'paused': False}
