# services/rental-service/src/tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for rental service tests.
"""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from shared.common.clients import RentalApiClient
from apps.core.services import BookingRequest


@pytest.fixture(autouse=True)
def clear_cache():
    """Tag versions, job history and counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def today():
    """Fixed 'today' for validator tests."""
    return date(2025, 9, 1)


@pytest.fixture
def booking_payload():
    """Provide a valid booking form payload."""
    return {
        'startDate': '2099-03-01',
        'endDate': '2099-03-04',
        'deliveryAddress': '123 Main Street',
        'deliveryCity': 'Saint John',
        'customerEmail': 'jane@example.com',
        'customerName': 'Jane Doe',
    }


@pytest.fixture
def booking_request(booking_payload):
    return BookingRequest.from_payload(booking_payload)


@pytest.fixture
def equipment():
    return {'id': 'eq-1', 'name': 'Kubota SVL75-3', 'dailyRate': 400, 'available': True}


@pytest.fixture
def rental_client(equipment):
    """Rental API client double answering the happy path."""
    client = AsyncMock(spec=RentalApiClient)
    client.get_equipment_list.return_value = {
        'success': True,
        'data': {'equipment': [equipment]},
    }
    client.check_availability.return_value = {
        'success': True,
        'data': {'available': True},
    }
    client.create_booking.return_value = {
        'success': True,
        'data': {'id': 'bk-1', 'bookingNumber': 'UDR-2099-0001', 'status': 'pending'},
    }
    return client
