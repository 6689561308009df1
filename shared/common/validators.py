"""
Shared Validators Module.

Common validation utilities used by the booking flow.
"""
import re
from datetime import date, datetime
from typing import Any

from dateutil.parser import isoparse
from django.core.exceptions import ValidationError

from .constants import MAX_RENTAL_DAYS

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


# =============================================================================
# DATE VALIDATORS
# =============================================================================

def parse_calendar_date(value: Any, field_name: str = "date") -> date:
    """
    Parse an ISO string into a calendar date.

    Any time-of-day component is discarded so day counts are always
    midnight-to-midnight.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field_name}")
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {field_name}")


def validate_date_range(
    start_date: date,
    end_date: date,
    max_days: int = MAX_RENTAL_DAYS,
) -> None:
    """Validate that end follows start and the span stays within max_days."""
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")

    if (end_date - start_date).days > max_days:
        raise ValidationError("Maximum rental period is 1 year")


# =============================================================================
# STRING VALIDATORS
# =============================================================================

def is_valid_email(value: str) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value.strip()))


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()
