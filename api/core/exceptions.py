"""
API Exceptions
==============
Domain errors raised by service objects, plus the DRF exception handler
that renders every error as ``{"error": <code>, "message": ..., "details"?: ...}``.
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('The request could not be processed.')
    default_code = 'bad_request'


class ValidationFailed(ServiceError):
    default_detail = _('Validation failed.')
    default_code = 'validation_failed'


class InvalidState(ServiceError):
    default_detail = _('This action is not allowed in the current state.')
    default_code = 'invalid_state'


class AccessDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _('Access denied.')
    default_code = 'access_denied'


class ResourceNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _('Not found.')
    default_code = 'not_found'


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _('Conflict with an existing record.')
    default_code = 'conflict'


def _error_code(exc):
    if isinstance(exc, Http404):
        return 'not_found'
    if isinstance(exc, PermissionDenied):
        return 'access_denied'
    codes = exc.get_codes()
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', 'error')


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        return Response(
            {'error': 'server_error', 'message': _('Internal server error.')},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        response.data = {
            'error': 'validation_failed',
            'message': _('Validation failed.'),
            'details': response.data,
        }
        return response

    data = response.data
    message = data.get('detail') if isinstance(data, dict) else data
    response.data = {'error': _error_code(exc), 'message': message}
    return response
