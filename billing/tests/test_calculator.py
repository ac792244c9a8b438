from decimal import Decimal

import pytest

from billing.exceptions import ConflictError, NotFoundError, ValidationError
from billing.models import Billing, BillingItem, Payment
from billing.services.calculator import calculate, compute_totals, derive_status
from billing.services.charges import breakdown_by_type, record_charge
from billing.services.payments import process_payment

pytestmark = pytest.mark.django_db


def test_scenario_1_no_discount(ready_visit):
    visit = ready_visit()
    billing = calculate(visit.id, discount=0, insurance_coverage=0)
    assert billing.subtotal == Decimal('200000.00')
    assert billing.consultation_fee == Decimal('50000.00')
    assert billing.total_amount == Decimal('200000.00')
    assert billing.payment_status == 'unpaid'


def test_scenario_2_percentage_discount(ready_visit):
    visit = ready_visit()
    billing = calculate(visit.id, discount_percentage=10)
    assert billing.discount == Decimal('20000.00')
    assert billing.discount_percentage == Decimal('10')
    assert billing.total_amount == Decimal('180000.00')


def test_percentage_wins_over_flat_discount(ready_visit):
    visit = ready_visit()
    billing = calculate(visit.id, discount=50000, discount_percentage=10)
    assert billing.total_amount == Decimal('180000.00')


def test_total_never_negative(ready_visit):
    visit = ready_visit()
    billing = calculate(visit.id, discount=150000, insurance_coverage=100000)
    assert billing.total_amount == Decimal('0.00')
    assert billing.payment_status == 'paid'


def test_recalculation_is_idempotent(ready_visit):
    visit = ready_visit()
    first = calculate(visit.id, discount=12345, insurance_coverage=1000)
    second = calculate(visit.id, discount=12345, insurance_coverage=1000)
    assert first.pk == second.pk
    assert first.total_amount == second.total_amount == Decimal('186655.00')
    assert Billing.objects.filter(visit=visit).count() == 1


def test_rounding_is_half_up():
    totals = compute_totals(Decimal('100.05'), Decimal('0'), discount_percentage=Decimal('50'))
    # 50.025 -> 50.03
    assert totals['discount'] == Decimal('50.03')
    assert totals['total_amount'] == Decimal('50.02')


def test_item_totals_and_consultation_fee_add_up(make_visit, doctor):
    visit = make_visit(visit_type='emergency')
    record_charge(visit, 'drug', 'Paracetamol 500mg', 10, Decimal('1500'), discount=Decimal('1000'))
    record_charge(visit, 'laboratory', 'Darah lengkap', 1, Decimal('85000'))
    from billing.services.records import lock_medical_record
    billing = lock_medical_record(visit.id, user=doctor)
    # 14000 + 85000 + 150000 emergency fee
    assert billing.subtotal == Decimal('249000.00')
    breakdown = breakdown_by_type(billing)
    assert breakdown['drug'] == {'amount': '14000.00', 'count': 1}
    assert breakdown['laboratory'] == {'amount': '85000.00', 'count': 1}
    assert breakdown['consultation']['amount'] == '150000.00'


def test_visit_without_locked_record_is_not_found(make_visit):
    visit = make_visit()
    with pytest.raises(NotFoundError) as exc:
        calculate(visit.id)
    assert exc.value.code == 'record_not_found'


def test_missing_visit_is_not_found(db):
    with pytest.raises(NotFoundError) as exc:
        calculate(999999)
    assert exc.value.code == 'visit_not_found'


@pytest.mark.parametrize('kwargs', [
    {'discount': -1},
    {'discount_percentage': 101},
    {'discount_percentage': -5},
    {'insurance_coverage': -10},
    {'discount': 'abc'},
])
def test_invalid_inputs_are_rejected(ready_visit, kwargs):
    visit = ready_visit()
    with pytest.raises(ValidationError):
        calculate(visit.id, **kwargs)


def test_total_cannot_drop_below_paid(ready_visit, cashier):
    visit = ready_visit()
    billing = Billing.objects.get(visit=visit)
    process_payment(billing.id, 150000, 'transfer', cashier=cashier)
    with pytest.raises(ConflictError) as exc:
        calculate(visit.id, discount_percentage=50)
    assert exc.value.code == 'total_below_paid'
    billing.refresh_from_db()
    assert billing.total_amount == Decimal('200000.00')


def test_recalculation_keeps_payment_status(ready_visit, cashier):
    visit = ready_visit()
    billing = Billing.objects.get(visit=visit)
    process_payment(billing.id, 100000, 'card', cashier=cashier)
    billing = calculate(visit.id, discount=100000)
    assert billing.total_amount == Decimal('100000.00')
    assert billing.paid_amount == Decimal('100000.00')
    assert billing.payment_status == 'paid'


def test_derive_status():
    assert derive_status(Decimal('100'), Decimal('0')) == 'unpaid'
    assert derive_status(Decimal('100'), Decimal('40')) == 'partial'
    assert derive_status(Decimal('100'), Decimal('100')) == 'paid'
    assert derive_status(Decimal('0'), Decimal('0')) == 'paid'


def test_billing_items_are_immutable(make_visit):
    visit = make_visit()
    item = record_charge(visit, 'material', 'Kasa steril', 2, Decimal('5000'))
    assert item.total_price == Decimal('10000.00')
    item.quantity = 5
    with pytest.raises(ValueError):
        item.save()
    assert BillingItem.objects.get(pk=item.pk).quantity == 2


def test_charge_rejected_on_settled_bill(ready_visit, cashier):
    visit = ready_visit()
    billing = Billing.objects.get(visit=visit)
    process_payment(billing.id, 200000, 'transfer', cashier=cashier)
    with pytest.raises(ConflictError) as exc:
        record_charge(visit, 'drug', 'Amoxicillin', 1, Decimal('20000'))
    assert exc.value.code == 'billing_settled'


def test_charge_after_lock_updates_the_total(ready_visit, cashier):
    visit = ready_visit()
    record_charge(visit, 'drug', 'Ceftriaxone 1g', 1, Decimal('100000'))
    billing = Billing.objects.get(visit=visit)
    assert billing.subtotal == Decimal('300000.00')
    assert billing.total_amount == Decimal('300000.00')

    process_payment(billing.id, 200000, 'card', cashier=cashier)
    billing.refresh_from_db()
    assert billing.payment_status == 'partial'
    assert billing.remaining_amount == Decimal('100000.00')


def test_charge_after_lock_keeps_discount_and_insurance(ready_visit):
    visit = ready_visit()
    calculate(visit.id, discount_percentage=10, insurance_coverage=5000)
    record_charge(visit, 'laboratory', 'Darah lengkap', 1, Decimal('100000'))
    billing = Billing.objects.get(visit=visit)
    # 300000 less 10% less 5000 insurance
    assert billing.discount == Decimal('30000.00')
    assert billing.discount_percentage == Decimal('10')
    assert billing.insurance_coverage == Decimal('5000.00')
    assert billing.total_amount == Decimal('265000.00')


def test_charge_reopens_a_zero_total_bill(ready_visit):
    visit = ready_visit()
    calculate(visit.id, discount=150000, insurance_coverage=100000)
    record_charge(visit, 'material', 'Infus set', 1, Decimal('100000'))
    billing = Billing.objects.get(visit=visit)
    assert billing.discount == Decimal('150000.00')
    assert billing.total_amount == Decimal('50000.00')
    assert billing.payment_status == 'unpaid'


def test_charge_before_lock_leaves_total_alone(make_visit):
    visit = make_visit()
    record_charge(visit, 'drug', 'Paracetamol 500mg', 2, Decimal('1500'))
    billing = Billing.objects.get(visit=visit)
    assert billing.total_amount == Decimal('0.00')


@pytest.mark.parametrize('quantity,unit_price,discount', [
    (0, Decimal('1000'), 0),
    (1, Decimal('-1'), 0),
    (1, Decimal('1000'), Decimal('1001')),
])
def test_charge_validation(make_visit, quantity, unit_price, discount):
    visit = make_visit()
    with pytest.raises(ValidationError):
        record_charge(visit, 'drug', 'Obat', quantity, unit_price, discount=discount)


def test_payments_are_immutable(ready_visit, cashier):
    visit = ready_visit()
    billing = Billing.objects.get(visit=visit)
    payment = process_payment(billing.id, 1000, 'card', cashier=cashier)
    payment.amount = Decimal('5')
    with pytest.raises(ValueError):
        payment.save()
    assert Payment.objects.get(pk=payment.pk).amount == Decimal('1000.00')
