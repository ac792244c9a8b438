import pytest
from rest_framework import exceptions as drf_exceptions

from billing.exceptions import (
    ERROR_STATUS,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    api_exception_handler,
)


@pytest.mark.parametrize('exc,status', [
    (ValidationError('bad'), 400),
    (ValidationError('too much', code='balance_exceeded'), 400),
    (NotFoundError('no bill', code='payment_target_not_found'), 400),
    (NotFoundError('no visit', code='visit_not_found'), 404),
    (NotFoundError('no payment', code='payment_not_found'), 404),
    (ConflictError('locked', code='record_locked'), 409),
    (ConflictError('paid', code='billing_settled'), 409),
    (ConflictError('bed held', code='bed_not_released'), 409),
    (InternalError('boom'), 500),
])
def test_error_codes_map_to_status(exc, status):
    assert exc.status_code == status
    resp = api_exception_handler(exc, {})
    assert resp.status_code == status
    assert resp.data['ok'] is False
    assert resp.data['error']['code'] == exc.code
    assert resp.data['error']['message'] == exc.message


def test_every_code_has_a_known_status():
    assert set(ERROR_STATUS.values()) == {400, 404, 409, 500}


def test_details_are_included_when_present():
    resp = api_exception_handler(ValidationError('bad', details={'amount': '-1'}), {})
    assert resp.data['error']['details'] == {'amount': '-1'}
    resp = api_exception_handler(ValidationError('bad'), {})
    assert 'details' not in resp.data['error']


def test_drf_validation_error_becomes_validation_error():
    resp = api_exception_handler(drf_exceptions.ValidationError({'amount': ['required']}), {})
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'validation_error'
    assert resp.data['error']['details'] == {'amount': ['required']}


def test_permission_denied_keeps_status():
    resp = api_exception_handler(drf_exceptions.PermissionDenied(), {})
    assert resp.status_code == 403
    assert resp.data['error']['code'] == 'api_error'


def test_unhandled_exception_is_internal_error(caplog):
    resp = api_exception_handler(RuntimeError('db exploded'), {'view': None})
    assert resp.status_code == 500
    assert resp.data['error']['code'] == 'internal_error'
    # internals are logged, not returned
    assert 'db exploded' not in str(resp.data)
