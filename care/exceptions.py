import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class SlotUnavailable(ValidationError):
    """The doctor already has a live appointment at this date and time."""
    default_detail = 'This time slot is already booked.'
    default_code = 'slot_unavailable'


class InvalidTransition(ValidationError):
    """The appointment cannot move from its current status to the requested one."""
    default_detail = 'This status change is not allowed.'
    default_code = 'invalid_transition'

    def __init__(self, current=None, new=None, detail=None):
        if detail is None and current is not None:
            detail = f'Cannot change appointment status from {current} to {new}.'
        super().__init__(detail=detail)


def _error_code(exc, resp) -> str:
    codes = getattr(exc, 'get_codes', None)
    if codes is not None:
        codes = codes()
        if isinstance(codes, str):
            return codes
        if isinstance(codes, list) and codes and isinstance(codes[0], str):
            return codes[0]
        if isinstance(codes, dict) and 'detail' in codes and isinstance(codes['detail'], str):
            return codes['detail']
    if resp.status_code == status.HTTP_400_BAD_REQUEST:
        return 'invalid'
    return 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.exception('Unhandled API error on %s', getattr(request, 'path', '?'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    elif isinstance(resp.data, list) and len(resp.data) == 1:
        detail = resp.data[0]
    else:
        detail = resp.data
    return Response(
        {'ok': False, 'error': {'code': _error_code(exc, resp), 'message': detail}},
        status=resp.status_code,
        headers={k: v for k, v in resp.items()},
    )
