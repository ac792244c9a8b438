"""
Typed billing errors and the DRF exception handler.

Services raise one of the four error classes below with a stable
``code``.  ``ERROR_STATUS`` is the only place where a code is mapped to
an HTTP status; the handler renders every failure in the same envelope::

    {"ok": false, "error": {"code": ..., "message": ..., "details": ...}}
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


ERROR_STATUS: dict[str, int] = {
    'validation_error': 400,
    'balance_exceeded': 400,
    # the payment path reports a missing target as a bad request
    'payment_target_not_found': 400,
    'visit_not_found': 404,
    'record_not_found': 404,
    'billing_not_found': 404,
    'payment_not_found': 404,
    'room_not_found': 404,
    'record_locked': 409,
    'record_not_locked': 409,
    'billing_settled': 409,
    'bed_unavailable': 409,
    'bed_not_released': 409,
    'total_below_paid': 409,
    'conflict': 409,
    'internal_error': 500,
}


class BillingError(Exception):
    """Base class of every error a billing service may raise."""
    default_code = 'internal_error'

    def __init__(self, message: str, *, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    @property
    def status_code(self) -> int:
        return ERROR_STATUS.get(self.code, 500)

    def as_dict(self) -> dict:
        err: dict[str, Any] = {'code': self.code, 'message': self.message}
        if self.details is not None:
            err['details'] = self.details
        return err


class ValidationError(BillingError):
    default_code = 'validation_error'


class NotFoundError(BillingError):
    default_code = 'visit_not_found'


class ConflictError(BillingError):
    default_code = 'conflict'


class InternalError(BillingError):
    default_code = 'internal_error'


def _envelope(code: str, message: Any, details: Any = None) -> dict:
    err: dict[str, Any] = {'code': code, 'message': message}
    if details is not None:
        err['details'] = details
    return {'ok': False, 'error': err}


def api_exception_handler(exc, context):
    if isinstance(exc, BillingError):
        if exc.status_code >= 500:
            logger.error('billing error %s: %s', exc.code, exc.message)
        return Response({'ok': False, 'error': exc.as_dict()}, status=exc.status_code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view') if context else None
        logger.exception('unhandled error in %s', getattr(view, '__name__', None) or type(view).__name__, exc_info=exc)
        return Response(_envelope('internal_error', 'Internal server error'), status=500)

    # normalize response
    if isinstance(exc, drf_exceptions.ValidationError):
        return Response(
            _envelope('validation_error', 'Invalid request data', details=resp.data),
            status=resp.status_code,
        )
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response(_envelope('api_error', detail), status=resp.status_code)
