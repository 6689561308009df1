# services/rental-service/src/tests/unit/test_pricing.py
"""
Unit Tests for the Pricing Calculator
"""

from datetime import date
from decimal import Decimal

import pytest

from apps.core.services import calculate_pricing
from apps.core.services.pricing_service import rental_days


class TestCalculatePricing:
    """Tests for calculate_pricing."""

    def test_delivery_booking(self):
        """Three days delivered to Saint John."""
        pricing = calculate_pricing('2025-09-01', '2025-09-04', 'Saint John')

        assert pricing.daily_rate == Decimal('350')
        assert pricing.days == 3
        assert pricing.subtotal == Decimal('1050')
        assert pricing.taxes == Decimal('157.5')
        assert pricing.float_fee == Decimal('150')
        assert pricing.total == Decimal('1357.5')

    def test_pickup_booking_has_no_float_fee(self):
        pricing = calculate_pricing('2099-01-01', '2099-01-02', '')

        assert pricing.days == 1
        assert pricing.subtotal == Decimal('350')
        assert pricing.taxes == Decimal('52.5')
        assert pricing.float_fee == Decimal('0')
        assert pricing.total == Decimal('402.5')

    def test_blank_city_counts_as_pickup(self):
        pricing = calculate_pricing('2099-01-01', '2099-01-02', '   ')
        assert pricing.float_fee == Decimal('0')

    def test_equipment_daily_rate(self):
        """Test pricing with the rate from an equipment record."""
        pricing = calculate_pricing('2099-01-01', '2099-01-04', 'Moncton', daily_rate=400)

        assert pricing.subtotal == Decimal('1200')
        assert pricing.taxes == Decimal('180')
        assert pricing.total == Decimal('1530')

    def test_missing_daily_rate_falls_back_to_default(self):
        pricing = calculate_pricing('2099-01-01', '2099-01-02', '', daily_rate=None)
        assert pricing.daily_rate == Decimal('350')

    def test_invariants_hold(self):
        pricing = calculate_pricing('2099-05-10', '2099-06-21', 'Fredericton')

        assert pricing.subtotal == pricing.daily_rate * pricing.days
        assert pricing.taxes == pricing.subtotal * Decimal('0.15')
        assert pricing.total == pricing.subtotal + pricing.taxes + pricing.float_fee

    def test_time_of_day_is_ignored(self):
        """Test that days are counted midnight to midnight."""
        pricing = calculate_pricing('2099-01-01T18:30:00', '2099-01-02T08:00:00', '')
        assert pricing.days == 1

    def test_accepts_date_objects(self):
        pricing = calculate_pricing(date(2099, 1, 1), date(2099, 1, 8), '')
        assert pricing.days == 7

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            calculate_pricing('not-a-date', '2099-01-02', '')

    def test_to_dict_uses_wire_names(self):
        data = calculate_pricing('2025-09-01', '2025-09-04', 'Saint John').to_dict()

        assert data == {
            'dailyRate': 350.0,
            'days': 3,
            'subtotal': 1050.0,
            'taxes': 157.5,
            'floatFee': 150.0,
            'total': 1357.5,
        }

    def test_formatted_has_two_decimals(self):
        formatted = calculate_pricing('2025-09-01', '2025-09-04', 'Saint John').formatted()

        assert formatted['taxes'] == '157.50'
        assert formatted['total'] == '1357.50'


class TestRentalDays:

    def test_whole_days(self):
        assert rental_days(date(2099, 1, 1), date(2099, 1, 31)) == 30

    def test_same_day(self):
        assert rental_days(date(2099, 1, 1), date(2099, 1, 1)) == 0
