import pytest

from billing.exceptions import ConflictError, NotFoundError
from billing.models import AuditEvent, Billing, MedicalRecord
from billing.services.payments import process_payment
from billing.services.records import lock_medical_record, unlock_medical_record
from billing.services.reports import can_discharge
from billing.services.visits import advance_visit, can_transition

pytestmark = pytest.mark.django_db


def test_lock_moves_visit_and_calculates(make_visit, doctor):
    visit = make_visit()
    billing = lock_medical_record(visit.id, user=doctor)
    visit.refresh_from_db()
    assert visit.status == 'billed'
    assert billing.total_amount == billing.consultation_fee
    record = MedicalRecord.objects.get(visit=visit)
    assert record.is_locked and record.locked_by == doctor
    assert AuditEvent.objects.filter(action='record_lock').exists()
    assert AuditEvent.objects.filter(action='billing_calculate').exists()


def test_lock_twice_conflicts(make_visit, doctor):
    visit = make_visit()
    lock_medical_record(visit.id, user=doctor)
    with pytest.raises(ConflictError) as exc:
        lock_medical_record(visit.id, user=doctor)
    assert exc.value.code == 'record_locked'


def test_lock_missing_record(db):
    with pytest.raises(NotFoundError) as exc:
        lock_medical_record(12345)
    assert exc.value.code == 'record_not_found'


def test_unlock_refused_after_payment(ready_visit, doctor, cashier):
    visit = ready_visit()
    process_payment(Billing.objects.get(visit=visit).id, 1000, 'card', cashier=cashier)
    with pytest.raises(ConflictError):
        unlock_medical_record(visit.id, user=doctor)


def test_unlock_without_payments(ready_visit, doctor):
    visit = ready_visit()
    record = unlock_medical_record(visit.id, user=doctor)
    assert record.is_locked is False
    with pytest.raises(ConflictError) as exc:
        unlock_medical_record(visit.id, user=doctor)
    assert exc.value.code == 'record_not_locked'


def test_illegal_transition_is_skipped(make_visit):
    visit = make_visit(status='registered')
    assert advance_visit(visit, 'paid') is False
    visit.refresh_from_db()
    assert visit.status == 'registered'
    assert can_transition('paid', 'completed')
    assert not can_transition('completed', 'cancelled')


def test_can_discharge_only_when_paid(ready_visit, cashier):
    visit = ready_visit()
    assert can_discharge(visit) is False
    process_payment(Billing.objects.get(visit=visit).id, 200000, 'card', cashier=cashier)
    assert can_discharge(visit) is True
