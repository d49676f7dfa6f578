"""
Outermost exception handler for the REST API.

Every API error leaves the process as ``{"error": ..., "code": ...}``. Field
validation errors keep their per-field messages under ``"fields"``. Anything
that is not an ``APIException`` is logged and reported as a generic 500 so no
internal detail reaches the client.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'Internal server error'


def _first_message(detail):
    """Pull the first human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return Response({'error': GENERIC_ERROR_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        response.data = {
            'error': _first_message(exc.detail) or 'Invalid request',
            'code': 'validation_error',
            'fields': exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail},
        }
        return response

    if isinstance(exc, APIException):
        codes = exc.get_codes()
        response.data = {
            'error': _first_message(exc.detail),
            'code': codes if isinstance(codes, str) else exc.default_code,
        }
        response.data.update(getattr(exc, 'extra', None) or {})
    elif isinstance(exc, Http404):
        response.data = {'error': 'Not found', 'code': 'not_found'}
    elif isinstance(exc, DjangoPermissionDenied):
        response.data = {'error': 'Permission denied', 'code': 'permission_denied'}

    return response
