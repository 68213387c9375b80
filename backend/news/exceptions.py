"""
Custom Exception Handler for DRF

Provides consistent error response format across the API:
    {"error": "<message>", "details": <optional DRF detail>}
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError
from django.db import IntegrityError
import logging

from .services import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Pull the first human-readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if message:
                return message if key == 'non_field_errors' else f"{key}: {message}"
        return None
    if isinstance(detail, (list, tuple)):
        for item in detail:
            message = _first_message(item)
            if message:
                return message
        return None
    return str(detail) if detail is not None else None


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Logs all unexpected exceptions
    2. Converts service and database exceptions to HTTP responses
    3. Provides consistent error format, without leaking internals on 500
    """

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            if isinstance(exc, ValidationError):
                message = _first_message(response.data) or 'Invalid input.'
            else:
                message = _first_message(response.data) or str(exc)
            response.data = {
                'error': message,
                'details': response.data
            }
        return response

    if isinstance(exc, NotFoundError):
        return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, ForbiddenError):
        return Response({'error': str(exc)}, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, IntegrityError):
        logger.warning("IntegrityError: %s", exc)
        return Response(
            {'error': 'Data integrity error. This may be a duplicate entry.'},
            status=status.HTTP_409_CONFLICT
        )

    if isinstance(exc, ValueError):
        return Response(
            {'error': str(exc)},
            status=status.HTTP_400_BAD_REQUEST
        )

    # Log unexpected exceptions
    logger.exception("Unhandled exception: %s", exc)

    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
