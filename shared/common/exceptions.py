# shared/common/exceptions.py
"""
API Exception Classes and the DRF Exception Handler

Every error leaves the API as
``{"success": false, "error": {"code", "message", "request_id", "details"?}}``.
"""

import logging
import traceback
from typing import Dict, Any, Optional
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from django.core.exceptions import ValidationError as DjangoValidationError
from django.conf import settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'An unexpected error occurred. Please try again later.'


# =============================================================================
# EXCEPTIONS
# =============================================================================

class BaseAPIException(APIException):
    """Base exception class for all custom API exceptions"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred.'
    default_code = 'error'
    error_code = 'INTERNAL_ERROR'

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(detail=detail)
        self.error_code = error_code or self.error_code
        self.details = details or {}


class ValidationException(BaseAPIException):
    """400 with per-field messages, e.g. from the booking validator"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Validation error.'
    default_code = 'validation_error'
    error_code = 'VALIDATION_ERROR'

    def __init__(self, errors: Dict[str, str], detail: str = None):
        super().__init__(detail=detail or next(iter(errors.values()), None), details=errors)


class TooManyRequestsException(BaseAPIException):
    """429 Too Many Requests"""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = 'Too many requests from this IP, please try again later.'
    default_code = 'too_many_requests'
    error_code = 'RATE_LIMITED'


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

def error_body(
    code: str,
    message: str,
    request_id: Optional[str] = None,
    details: Any = None,
    **extra
) -> Dict[str, Any]:
    """Build the error envelope."""
    error = {'code': code, 'message': message, 'request_id': request_id}
    if details:
        error['details'] = details
    error.update(extra)
    return {'success': False, 'error': error}


def custom_exception_handler(exc, context) -> Optional[Response]:
    """
    DRF exception handler.

    API exceptions keep their status code; anything else is logged and
    rendered as a 500 without internal detail unless DEBUG is on.
    """
    request = context.get('request')
    request_id = getattr(request, 'correlation_id', None)

    if isinstance(exc, DjangoValidationError):
        details = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        return Response(
            error_body('VALIDATION_ERROR', exc.messages[0], request_id, details),
            status=status.HTTP_400_BAD_REQUEST
        )

    response = exception_handler(exc, context)
    if response is not None:
        response.data = error_body(
            get_error_code(exc),
            get_error_message(exc),
            request_id,
            get_error_details(exc),
        )
        return response

    logger.exception(
        f"Unhandled exception: {exc}",
        extra={'request_id': request_id, 'exception_type': type(exc).__name__}
    )

    if settings.DEBUG:
        body = error_body(
            'INTERNAL_ERROR', str(exc), request_id,
            type=type(exc).__name__,
            traceback=traceback.format_exc().split('\n'),
        )
    else:
        body = error_body('INTERNAL_ERROR', GENERIC_ERROR_MESSAGE, request_id)

    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def get_error_code(exc) -> str:
    if isinstance(exc, BaseAPIException):
        return exc.error_code
    if isinstance(exc, DRFValidationError):
        return 'VALIDATION_ERROR'
    return str(getattr(exc, 'default_code', 'error')).upper()


def get_error_message(exc) -> str:
    """First message of the exception; for field errors the first field wins."""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, dict):
        detail = next(iter(detail.values()), '')
    if isinstance(detail, list):
        detail = detail[0] if detail else ''
    return str(detail) if detail else str(exc)


def get_error_details(exc) -> Any:
    if isinstance(exc, BaseAPIException):
        return exc.details
    if isinstance(exc, DRFValidationError) and isinstance(exc.detail, dict):
        return exc.detail
    return None
