"""
Cashier queue: visits that are clinically closed but not yet paid.
"""
from __future__ import annotations

from typing import Optional

from django.db.models import Q

from billing.models import Billing, MedicalRecord


def _dt(value):
    return value.isoformat() if value else None


def serialize_billing_summary(billing: Optional[Billing]) -> Optional[dict]:
    if billing is None:
        return None
    return {
        'id': billing.id,
        'subtotal': str(billing.subtotal),
        'discount': str(billing.discount),
        'insuranceCoverage': str(billing.insurance_coverage),
        'totalAmount': str(billing.total_amount),
        'paidAmount': str(billing.paid_amount),
        'remainingAmount': str(billing.remaining_amount),
        'paymentStatus': billing.payment_status,
    }


def queue_entry(record: MedicalRecord) -> dict:
    visit = record.visit
    patient = visit.patient
    billing = getattr(visit, 'billing', None)
    return {
        'visit': {
            'id': visit.id,
            'visitNumber': visit.visit_number,
            'visitType': visit.visit_type,
            'status': visit.status,
            'createdAt': _dt(visit.created_at),
        },
        'patient': {
            'id': patient.id,
            'name': patient.name,
            'mrNumber': patient.mr_number,
            'nationalId': patient.national_id or None,
            'phone': patient.phone or None,
            'insuranceType': patient.insurance_type or None,
        },
        'billing': serialize_billing_summary(billing),
        'medicalRecord': {
            'id': record.id,
            'isLocked': record.is_locked,
            'lockedAt': _dt(record.locked_at),
        },
    }


def get_visits_ready_for_billing() -> list[dict]:
    """Locked records whose bill is missing or not fully paid, oldest lock first."""
    records = (
        MedicalRecord.objects.filter(is_locked=True)
        .filter(Q(visit__billing__isnull=True) | ~Q(visit__billing__payment_status=Billing.STATUS_PAID))
        .select_related('visit', 'visit__patient', 'visit__billing')
        .order_by('locked_at', 'id')
    )
    return [queue_entry(r) for r in records]


def search(queue: list[dict], query: Optional[str]) -> list[dict]:
    """Filter queue entries by patient name, MR number, visit number or NIK.

    Matching is a case-insensitive substring test; a blank query keeps
    the queue as it is.
    """
    q = (query or '').strip().lower()
    if not q:
        return queue

    def matches(entry: dict) -> bool:
        fields = (
            entry['patient'].get('name'),
            entry['patient'].get('mrNumber'),
            entry['visit'].get('visitNumber'),
            entry['patient'].get('nationalId'),
        )
        return any(q in (f or '').lower() for f in fields)

    return [e for e in queue if matches(e)]
