# services/rental-service/src/apps/core/services/pricing_service.py
"""
Pricing Service

Rental cost breakdown: daily rate x days, 15% HST and a flat float
(delivery) fee.
"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from django.core.exceptions import ValidationError

from shared.common.constants import DEFAULT_DAILY_RATE, TAX_RATE, FLOAT_FEE
from shared.common.validators import parse_calendar_date, is_blank

TWO_PLACES = Decimal('0.01')


@dataclass(frozen=True)
class PricingBreakdown:
    """Cost breakdown for one rental."""

    daily_rate: Decimal
    days: int
    subtotal: Decimal
    taxes: Decimal
    float_fee: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dailyRate': float(self.daily_rate),
            'days': self.days,
            'subtotal': float(self.subtotal),
            'taxes': float(self.taxes),
            'floatFee': float(self.float_fee),
            'total': float(self.total),
        }

    def formatted(self) -> Dict[str, str]:
        """Two-decimal strings for display."""
        return {
            'dailyRate': f"{self.daily_rate.quantize(TWO_PLACES)}",
            'subtotal': f"{self.subtotal.quantize(TWO_PLACES)}",
            'taxes': f"{self.taxes.quantize(TWO_PLACES)}",
            'floatFee': f"{self.float_fee.quantize(TWO_PLACES)}",
            'total': f"{self.total.quantize(TWO_PLACES)}",
        }


def rental_days(start_date: date, end_date: date) -> int:
    """Whole calendar days between start and end, rounded up."""
    seconds = (end_date - start_date).total_seconds()
    return math.ceil(abs(seconds) / 86400)


def calculate_pricing(
    start_date: Union[str, date],
    end_date: Union[str, date],
    delivery_city: Optional[str] = '',
    daily_rate: Union[Decimal, int, float, str, None] = None,
) -> PricingBreakdown:
    """
    Calculate the cost breakdown of a rental.

    Args:
        start_date: First rental day (ISO string or date)
        end_date: Return day (ISO string or date)
        delivery_city: Delivery city; blank means the customer picks up
        daily_rate: Equipment daily rate, defaults to DEFAULT_DAILY_RATE

    Raises:
        ValueError: if either date cannot be parsed. Run the booking
            validator first.
    """
    try:
        start = parse_calendar_date(start_date, 'start date')
        end = parse_calendar_date(end_date, 'end date')
    except ValidationError as e:
        raise ValueError(e.messages[0]) from e

    rate = Decimal(str(daily_rate)) if daily_rate else DEFAULT_DAILY_RATE
    days = rental_days(start, end)

    subtotal = rate * days
    taxes = subtotal * TAX_RATE
    float_fee = Decimal('0') if is_blank(delivery_city) else FLOAT_FEE
    total = subtotal + taxes + float_fee

    return PricingBreakdown(
        daily_rate=rate,
        days=days,
        subtotal=subtotal,
        taxes=taxes,
        float_fee=float_fee,
        total=total,
    )
