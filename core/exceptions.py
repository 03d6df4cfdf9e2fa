"""
Custom exception handling for Fix It Now Backend.

Provides consistent error response format and security-aware error handling.
Never exposes internal details in error responses.
"""

import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

# Security logger for tracking suspicious activities
security_logger = logging.getLogger('fixitnow.security')


def custom_exception_handler(exc, context):
    """
    Render every API error in one envelope:

    {
        "success": false,
        "error": {
            "code": "ERROR_CODE",
            "message": "User-friendly message"
        }
    }

    FixItNowAPIException subclasses (lifecycle failures included) carry
    their own code, message and status. Everything else goes through
    DRF's handler and gets a generic code for its status.
    """
    request = context.get('request')
    view = context.get('view')

    if isinstance(exc, FixItNowAPIException):
        if exc.status_code in [401, 403, 429]:
            _log_security_event(exc, request, view, exc.status_code)
        return Response(
            {
                'success': False,
                'error': {
                    'code': exc.code,
                    'message': exc.message,
                }
            },
            status=exc.status_code,
        )

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        custom_response = {
            'success': False,
            'error': {
                'code': _get_error_code(response.status_code),
                'message': _get_safe_message(exc, response.status_code),
            }
        }

        if response.status_code in [401, 403, 429]:
            _log_security_event(exc, request, view, response.status_code)

        response.data = custom_response

    return response


def _get_error_code(status_code):
    """Map HTTP status codes to error codes."""
    error_codes = {
        400: 'BAD_REQUEST',
        401: 'UNAUTHORIZED',
        403: 'FORBIDDEN',
        404: 'NOT_FOUND',
        405: 'METHOD_NOT_ALLOWED',
        409: 'CONFLICT',
        422: 'VALIDATION_ERROR',
        429: 'RATE_LIMIT_EXCEEDED',
        500: 'INTERNAL_ERROR',
        502: 'BAD_GATEWAY',
        503: 'SERVICE_UNAVAILABLE',
    }
    return error_codes.get(status_code, 'UNKNOWN_ERROR')


def _get_safe_message(exc, status_code):
    """
    Get a safe, user-friendly error message.
    Validation errors (400) name the first offending field.
    """
    safe_messages = {
        400: 'Invalid request. Please check your input.',
        401: 'Authentication required.',
        403: 'You do not have permission to perform this action.',
        404: 'The requested resource was not found.',
        405: 'This method is not allowed.',
        409: 'Request conflicts with current state.',
        422: 'Unable to process the request.',
        429: 'Too many requests. Please try again later.',
        500: 'An internal error occurred. Please try again later.',
        502: 'Service temporarily unavailable.',
        503: 'Service temporarily unavailable.',
    }

    if status_code == 400 and hasattr(exc, 'detail'):
        if isinstance(exc.detail, dict):
            for field, errors in exc.detail.items():
                if isinstance(errors, list) and errors:
                    return f"Validation error: {field} - {errors[0]}"
        elif isinstance(exc.detail, list) and exc.detail:
            return str(exc.detail[0])
        elif isinstance(exc.detail, str):
            return exc.detail

    return safe_messages.get(status_code, 'An error occurred.')


def _log_security_event(exc, request, view, status_code):
    """Log security-relevant events for monitoring and alerting."""
    user_info = 'anonymous'
    if request and hasattr(request, 'user') and request.user.is_authenticated:
        user_info = str(request.user.id)

    ip_address = _get_client_ip(request) if request else 'unknown'
    view_name = view.__class__.__name__ if view else 'unknown'

    security_logger.warning(
        f"Security event: status={status_code}, "
        f"user={user_info}, ip={ip_address}, "
        f"view={view_name}, exception={exc.__class__.__name__}"
    )


def _get_client_ip(request):
    """
    Extract client IP address from request.
    Handles proxy headers (X-Forwarded-For).
    """
    if not request:
        return 'unknown'

    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR', 'unknown')

    return ip


class FixItNowAPIException(Exception):
    """Base exception class for Fix It Now errors."""

    default_code = 'ERROR'
    default_message = 'An error occurred.'
    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, status_code=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)


class LifecycleError(FixItNowAPIException):
    """Base class for failed report lifecycle requests. The report is left untouched."""
    default_code = 'LIFECYCLE_ERROR'
    default_message = 'The report could not be updated.'


class Unauthorized(LifecycleError):
    """The acting role (or user) may not perform this transition."""
    default_code = 'TRANSITION_UNAUTHORIZED'
    default_message = 'You are not allowed to perform this transition.'
    default_status_code = status.HTTP_403_FORBIDDEN


class IllegalTransition(LifecycleError):
    """The target status is not reachable from the current status."""
    default_code = 'ILLEGAL_TRANSITION'
    default_message = 'This status change is not allowed.'
    default_status_code = status.HTTP_409_CONFLICT


class TransitionValidationError(LifecycleError):
    """Data required by the transition is missing or invalid."""
    default_code = 'TRANSITION_VALIDATION_ERROR'
    default_message = 'The transition request is incomplete.'
    default_status_code = status.HTTP_400_BAD_REQUEST


class ConcurrentModification(LifecycleError):
    """The report changed between read and write."""
    default_code = 'CONCURRENT_MODIFICATION'
    default_message = 'The report was modified by someone else. Reload and try again.'
    default_status_code = status.HTTP_409_CONFLICT


class AccountSuspendedError(FixItNowAPIException):
    """Raised when a suspended account tries to act."""
    default_code = 'ACCOUNT_SUSPENDED'
    default_message = 'Your account has been suspended.'
    default_status_code = status.HTTP_403_FORBIDDEN
