# services/rental-service/src/apps/core/services/validation_service.py
"""
Validation Service

Booking wizard checkpoints. Each step returns a mapping of field name to the
first failing message; an empty mapping means the step is valid.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from shared.common.validators import (
    parse_calendar_date,
    validate_date_range,
    is_valid_email,
    is_blank,
)

logger = logging.getLogger(__name__)

FieldErrors = Dict[str, str]


@dataclass
class BookingRequest:
    """Booking form payload. Dates are calendar dates (YYYY-MM-DD)."""

    start_date: str = ''
    end_date: str = ''
    delivery_address: str = ''
    delivery_city: str = ''
    customer_email: str = ''
    customer_name: str = ''

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'BookingRequest':
        """Build from a camelCase wire payload."""
        return cls(
            start_date=data.get('startDate') or '',
            end_date=data.get('endDate') or '',
            delivery_address=data.get('deliveryAddress') or '',
            delivery_city=data.get('deliveryCity') or '',
            customer_email=data.get('customerEmail') or '',
            customer_name=data.get('customerName') or '',
        )

    def to_payload(self) -> Dict[str, str]:
        return {
            'startDate': self.start_date,
            'endDate': self.end_date,
            'deliveryAddress': self.delivery_address,
            'deliveryCity': self.delivery_city,
            'customerEmail': self.customer_email,
            'customerName': self.customer_name,
        }

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def _parse(value: Any, label: str) -> Optional[date]:
    try:
        return parse_calendar_date(value, label)
    except ValidationError:
        return None


def validate_dates_step(
    request: BookingRequest,
    today: Optional[date] = None,
) -> FieldErrors:
    """
    Validate the dates step.

    Start date must be present, parseable and not in the past. End date must
    be present, parseable, after the start date and within one year of it.
    """
    errors: FieldErrors = {}
    today = today or timezone.localdate()

    start = None
    if is_blank(request.start_date):
        errors['startDate'] = "Start date is required"
    else:
        start = _parse(request.start_date, 'start date')
        if start is None:
            errors['startDate'] = "Start date must be a valid date"
        elif start < today:
            errors['startDate'] = "Start date must be today or later"

    if is_blank(request.end_date):
        errors['endDate'] = "End date is required"
    else:
        end = _parse(request.end_date, 'end date')
        if end is None:
            errors['endDate'] = "End date must be a valid date"
        elif start is not None:
            try:
                validate_date_range(start, end)
            except ValidationError as e:
                errors['endDate'] = e.messages[0]

    return errors


def validate_address_step(request: BookingRequest) -> FieldErrors:
    """Validate the delivery address step."""
    errors: FieldErrors = {}

    if is_blank(request.delivery_address):
        errors['deliveryAddress'] = "Delivery address is required"

    if is_blank(request.delivery_city):
        errors['deliveryCity'] = "City is required"

    return errors


def validate_customer(request: BookingRequest) -> FieldErrors:
    errors: FieldErrors = {}

    if not is_valid_email(request.customer_email or ''):
        errors['customerEmail'] = "Valid email is required"

    if is_blank(request.customer_name):
        errors['customerName'] = "Customer name is required"

    return errors


def validate_booking_request(
    request: BookingRequest,
    today: Optional[date] = None,
) -> FieldErrors:
    """Run every step plus the customer details checks used at submission."""
    errors: FieldErrors = {}
    errors.update(validate_dates_step(request, today=today))
    errors.update(validate_address_step(request))
    errors.update(validate_customer(request))
    return errors


STEP_VALIDATORS = {
    'dates': validate_dates_step,
    'address': validate_address_step,
    'all': validate_booking_request,
}


def validate_step(step: str, request: BookingRequest) -> FieldErrors:
    """
    Validate one wizard step by name.

    Raises:
        ValueError: for an unknown step name
    """
    validator = STEP_VALIDATORS.get(step)
    if validator is None:
        raise ValueError(f"Unknown validation step: {step}")
    return validator(request)


def clear_field_error(errors: FieldErrors, field: str) -> FieldErrors:
    """Return a copy of ``errors`` without the entry for the edited field."""
    return {name: message for name, message in errors.items() if name != field}


def first_error(errors: FieldErrors) -> Optional[str]:
    return next(iter(errors.values()), None)
