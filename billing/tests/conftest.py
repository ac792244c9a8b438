"""
Shared fixtures for the billing tests.

``make_visit`` builds a patient, a visit in ``examined`` state and its
(unlocked) medical record; ``ready_visit`` additionally charges items and
locks the record so that a bill exists.
"""
from decimal import Decimal
from itertools import count

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from billing.models import MedicalRecord, Patient, Room, User, Visit
from billing.services.charges import record_charge
from billing.services.records import lock_medical_record

_seq = count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def _user(username, role):
    return User.objects.create_user(username=username, password='P@ssw0rd123', role=role)


@pytest.fixture
def cashier(db):
    return _user('cashier1', 'cashier')


@pytest.fixture
def doctor(db):
    return _user('doctor1', 'doctor')


@pytest.fixture
def nurse(db):
    return _user('nurse1', 'nurse')


@pytest.fixture
def admin_user(db):
    return _user('admin1', 'admin')


@pytest.fixture
def receptionist(db):
    return _user('reception1', 'receptionist')


@pytest.fixture
def make_visit(db):
    def _make(name='Budi Santoso', visit_type=Visit.TYPE_OUTPATIENT, national_id='', insurance_type='umum',
              mr_number=None, visit_number=None, status='examined'):
        n = next(_seq)
        patient = Patient.objects.create(
            name=name,
            mr_number=mr_number or f'MR{n:06d}',
            national_id=national_id,
            insurance_type=insurance_type,
        )
        visit = Visit.objects.create(
            patient=patient,
            visit_number=visit_number or f'V2024{n:05d}',
            visit_type=visit_type,
            status=status,
        )
        MedicalRecord.objects.create(visit=visit)
        return visit
    return _make


@pytest.fixture
def ready_visit(make_visit, doctor):
    """Outpatient visit with a 150000 service charge; with the 50000 fee the subtotal is 200000."""
    def _make(**kwargs):
        visit = make_visit(**kwargs)
        record_charge(visit, 'service', 'Konsultasi spesialis', 1, Decimal('150000'))
        lock_medical_record(visit.id, user=doctor)
        visit.refresh_from_db()
        return visit
    return _make


@pytest.fixture
def room(db):
    return Room.objects.create(room_number='201', room_type='kelas 1', bed_count=2, available_beds=2,
                               daily_rate=Decimal('300000'))


@pytest.fixture
def api_client():
    return APIClient()


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def queue_changed(self, **kwargs):
        self.events.append(kwargs)


@pytest.fixture
def notifier():
    return RecordingNotifier()
