"""
Queue domain errors and the project-wide API exception handler.

Service functions raise the :class:`QueueError` subclasses below.  The
handler turns those, DRF's own exceptions and anything unexpected into
the same tagged body ``{'ok': False, 'error': {'code', 'message'}}`` so
callers can always branch on ``error.code``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class QueueError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'queue operation failed'
    default_code = 'queue_error'


class NotFound(QueueError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'not found'
    default_code = 'not_found'


class NoAvailableCounter(QueueError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'no active counter in this category'
    default_code = 'no_available_counter'


class InvalidTransition(QueueError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'transition not allowed'
    default_code = 'invalid_transition'


class RoutingFailed(QueueError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'could not assign a token, please retry'
    default_code = 'routing_failed'


class InvalidRequest(QueueError):
    default_detail = 'invalid request'
    default_code = 'invalid_request'


def _error_code(exc) -> str:
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            return codes
        # Field validation errors carry a dict/list of codes
        return 'invalid_request'
    return 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error('unhandled API error: %s', exc, exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    headers = {h: resp[h] for h in ('WWW-Authenticate', 'Retry-After') if h in resp}
    return Response(
        {'ok': False, 'error': {'code': _error_code(exc), 'message': detail}},
        status=resp.status_code,
        headers=headers,
    )
