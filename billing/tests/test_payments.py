from decimal import Decimal

import pytest

from billing.exceptions import NotFoundError, ValidationError
from billing.models import AuditEvent, Billing, Payment
from billing.services.calculator import calculate
from billing.services.payments import change_due, process_payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def billing_180k(ready_visit):
    visit = ready_visit()
    return calculate(visit.id, discount_percentage=10)


def test_scenario_3_partial_cash_payment(billing_180k, cashier):
    payment = process_payment(billing_180k.id, 100000, 'cash', amount_received=100000, cashier=cashier)
    billing_180k.refresh_from_db()
    assert payment.change_given == Decimal('0.00')
    assert billing_180k.payment_status == 'partial'
    assert billing_180k.remaining_amount == Decimal('80000.00')
    assert billing_180k.processed_by == cashier


def test_scenario_4_overpayment_rejected(billing_180k, cashier):
    process_payment(billing_180k.id, 100000, 'cash', amount_received=100000, cashier=cashier)
    with pytest.raises(ValidationError) as exc:
        process_payment(billing_180k.id, 100000, 'cash', amount_received=100000, cashier=cashier)
    assert exc.value.code == 'balance_exceeded'
    assert exc.value.message == 'Payment amount exceeds remaining balance'
    assert Payment.objects.filter(billing=billing_180k).count() == 1


def test_scenario_5_settling_cash_payment_with_change(billing_180k, cashier):
    process_payment(billing_180k.id, 100000, 'cash', amount_received=100000, cashier=cashier)
    payment = process_payment(billing_180k.id, 80000, 'cash', amount_received=100000, cashier=cashier)
    billing_180k.refresh_from_db()
    assert payment.change_given == Decimal('20000.00')
    assert billing_180k.payment_status == 'paid'
    assert billing_180k.paid_amount == Decimal('180000.00')
    billing_180k.visit.refresh_from_db()
    assert billing_180k.visit.status == 'paid'


def test_non_cash_payment_has_no_change(billing_180k, cashier):
    payment = process_payment(billing_180k.id, 50000, 'transfer', amount_received=999999,
                              payment_reference='TRX-001', cashier=cashier)
    assert payment.amount_received is None
    assert payment.change_given == Decimal('0.00')
    assert payment.payment_reference == 'TRX-001'


@pytest.mark.parametrize('amount,method,received', [
    (0, 'card', None),
    (-5, 'card', None),
    (1000, 'bitcoin', None),
    (1000, 'cash', None),
    (1000, 'cash', 999),
])
def test_invalid_payment_input(billing_180k, cashier, amount, method, received):
    with pytest.raises(ValidationError) as exc:
        process_payment(billing_180k.id, amount, method, amount_received=received, cashier=cashier)
    assert exc.value.code == 'validation_error'
    assert not Payment.objects.exists()


def test_missing_billing(db):
    with pytest.raises(NotFoundError) as exc:
        process_payment(424242, 1000, 'card')
    assert exc.value.code == 'payment_target_not_found'
    assert exc.value.status_code == 400


def test_sum_of_payments_never_exceeds_total(billing_180k, cashier):
    for amount in (60000, 60000, 60000):
        process_payment(billing_180k.id, amount, 'card', cashier=cashier)
    with pytest.raises(ValidationError):
        process_payment(billing_180k.id, Decimal('0.01'), 'card', cashier=cashier)
    total = sum(p.amount for p in Payment.objects.filter(billing=billing_180k))
    assert total == billing_180k.total_amount


def test_remaining_is_recomputed_from_payments(billing_180k, cashier):
    process_payment(billing_180k.id, 100000, 'card', cashier=cashier)
    # a stale cached column must not let the next payment overshoot
    Billing.objects.filter(pk=billing_180k.pk).update(paid_amount=Decimal('0'))
    with pytest.raises(ValidationError):
        process_payment(billing_180k.id, 100000, 'card', cashier=cashier)


def test_notes_are_sanitised_and_audited(billing_180k, cashier):
    payment = process_payment(billing_180k.id, 1000, 'card', notes='<script>x</script>lunas <b>ok</b>',
                              cashier=cashier)
    assert '<' not in payment.notes
    event = AuditEvent.objects.get(action='payment_create')
    assert event.object_id == payment.id
    assert event.user == cashier


def test_notifier_runs_after_commit(billing_180k, cashier, notifier, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        process_payment(billing_180k.id, 180000, 'card', cashier=cashier, notifier=notifier)
    assert notifier.events == [{
        'reason': 'payment',
        'visit_id': billing_180k.visit_id,
        'billing_id': billing_180k.id,
        'payment_status': 'paid',
    }]


def test_change_due():
    assert change_due(Decimal('80000'), Decimal('100000')) == Decimal('20000.00')
    assert change_due(Decimal('80000'), Decimal('80000')) == Decimal('0.00')
    assert change_due(Decimal('80000'), None) == Decimal('0.00')
