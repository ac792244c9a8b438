import pytest

from billing.models import Billing
from billing.services.calculator import calculate
from billing.services.payments import process_payment
from billing.services.queue import get_visits_ready_for_billing, search

pytestmark = pytest.mark.django_db


def test_queue_lists_locked_unpaid_visits_oldest_first(ready_visit, make_visit, cashier):
    first = ready_visit(name='Siti Aminah')
    second = ready_visit(name='Agus Salim')
    make_visit(name='Not Locked Yet')
    paid = ready_visit(name='Already Paid')
    process_payment(Billing.objects.get(visit=paid).id, 200000, 'card', cashier=cashier)

    queue = get_visits_ready_for_billing()
    assert [e['visit']['id'] for e in queue] == [first.id, second.id]
    entry = queue[0]
    assert set(entry) == {'visit', 'patient', 'billing', 'medicalRecord'}
    assert entry['billing']['paymentStatus'] == 'unpaid'
    assert entry['medicalRecord']['isLocked'] is True


def test_partially_paid_visit_stays_in_queue(ready_visit, cashier):
    visit = ready_visit()
    process_payment(Billing.objects.get(visit=visit).id, 1000, 'card', cashier=cashier)
    queue = get_visits_ready_for_billing()
    assert [e['visit']['id'] for e in queue] == [visit.id]
    assert queue[0]['billing']['paymentStatus'] == 'partial'


def test_zero_total_visit_leaves_queue(ready_visit):
    visit = ready_visit()
    calculate(visit.id, discount_percentage=100)
    assert get_visits_ready_for_billing() == []


def test_scenario_6_search(ready_visit):
    ready_visit(name='Dewi Lestari', insurance_type='bpjs')
    bpjs = ready_visit(name='Rina', mr_number='MR-BPJS-77')
    ready_visit(name='Joko', national_id='3201BPJS')
    ready_visit(name='Tono', visit_number='VBPJS001')
    ready_visit(name='Andi')

    queue = get_visits_ready_for_billing()
    assert search(queue, '') == queue
    assert search(queue, '   ') == queue
    assert search(queue, None) == queue

    hits = search(queue, 'bpjs')
    # insurance type is not a searched field
    assert sorted(e['patient']['name'] for e in hits) == ['Joko', 'Rina', 'Tono']
    assert bpjs.id in [e['visit']['id'] for e in hits]


def test_search_is_case_insensitive_on_name(ready_visit):
    ready_visit(name='Budi Santoso')
    queue = get_visits_ready_for_billing()
    assert len(search(queue, 'SANTOSO')) == 1
    assert search(queue, 'xyz') == []
