"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns uniform structure.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError

from exams.errors import ExamError

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "detail": str, "code": str, "errors": dict (validation only), ...extra }
    """
    request = context.get('request') if context else None
    path = request.path if request else 'unknown'

    if isinstance(exc, ExamError):
        logger.info('exam_error path=%s code=%s detail=%s', path, exc.default_code, exc.detail)
        return Response(exc.as_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(response.data, dict) and 'detail' not in response.data:
            # Serializer field errors: keep them under "errors"
            response.data = {'detail': 'Invalid request.', 'errors': response.data}
        elif not isinstance(response.data, dict):
            response.data = {'detail': _get_detail(exc), 'errors': response.data}
        response.data.setdefault('code', _get_code(exc))
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': '; '.join(exc.messages), 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception('Unhandled exception path=%s: %s', path, exc)
    # Generic message for users; "details" is for operators reading the response
    return Response(
        {
            'detail': 'An internal error occurred.',
            'code': 'internal_error',
            'details': f'{type(exc).__name__}: {str(exc)[:200]}',
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        d = exc.detail
        if isinstance(d, list):
            return str(d[0]) if d else 'Error'
        if isinstance(d, dict):
            return str(d.get('detail', d))
        return str(d)
    return str(exc)


def _get_code(exc):
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'NotFound': 'not_found',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
        'ParseError': 'validation_error',
    }
    return codes.get(type(exc).__name__, 'error')
