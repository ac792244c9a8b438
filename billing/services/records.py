"""
Locking and unlocking medical records.

A locked record is the signal that the clinical side of a visit is done:
the visit moves to ``ready_for_billing``, a first bill is calculated and
the visit appears in the cashier queue.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from billing.exceptions import ConflictError, NotFoundError
from billing.models import BedAssignment, Billing, MedicalRecord, Payment
from billing.services.audit import log_action
from billing.services.calculator import calculate
from billing.services.visits import advance_visit

logger = logging.getLogger(__name__)


def _record_for_update(visit_id: int) -> MedicalRecord:
    record = (
        MedicalRecord.objects.select_for_update()
        .select_related('visit')
        .filter(visit_id=visit_id)
        .first()
    )
    if not record:
        raise NotFoundError('Medical record not found', code='record_not_found')
    return record


def lock_medical_record(visit_id: int, user=None, notifier=None) -> Billing:
    """Lock the record of a visit and return its freshly calculated bill.

    An inpatient still holding a bed is refused: the stay is charged when
    the bed is released, and that charge has to land before the bill can
    be settled.
    """
    with transaction.atomic():
        record = _record_for_update(visit_id)
        if record.is_locked:
            raise ConflictError('Medical record is already locked', code='record_locked',
                                details={'visitId': visit_id})
        if BedAssignment.objects.filter(visit_id=visit_id, released_at__isnull=True).exists():
            raise ConflictError('Release the bed before closing the record', code='bed_not_released',
                                details={'visitId': visit_id})
        record.is_locked = True
        record.locked_at = timezone.now()
        record.locked_by = user if getattr(user, 'pk', None) else None
        record.save(update_fields=['is_locked', 'locked_at', 'locked_by'])

        advance_visit(record.visit, 'ready_for_billing')
        log_action(user=user, action='record_lock', object_type='medical_record', object_id=record.id,
                   detail={'visitId': visit_id})

        billing = calculate(visit_id, user=user)

        if notifier is not None:
            transaction.on_commit(lambda: notifier.queue_changed(
                reason='record_locked', visit_id=visit_id, billing_id=billing.id,
                payment_status=billing.payment_status,
            ))

    logger.info('medical record of visit %s locked', record.visit.visit_number)
    return billing


def unlock_medical_record(visit_id: int, user=None, notifier=None) -> MedicalRecord:
    """Reopen a record for editing; refused once any payment was taken."""
    with transaction.atomic():
        record = _record_for_update(visit_id)
        if not record.is_locked:
            raise ConflictError('Medical record is not locked', code='record_not_locked',
                                details={'visitId': visit_id})
        if Payment.objects.filter(billing__visit_id=visit_id).exists():
            logger.warning('unlock of visit %s refused: payments recorded', record.visit.visit_number)
            raise ConflictError('Cannot unlock a record whose bill has payments', code='billing_settled',
                                details={'visitId': visit_id})
        record.is_locked = False
        record.locked_at = None
        record.locked_by = None
        record.save(update_fields=['is_locked', 'locked_at', 'locked_by'])

        log_action(user=user, action='record_unlock', object_type='medical_record', object_id=record.id,
                   detail={'visitId': visit_id})

        if notifier is not None:
            transaction.on_commit(lambda: notifier.queue_changed(reason='record_unlocked', visit_id=visit_id))

    logger.info('medical record of visit %s unlocked', record.visit.visit_number)
    return record
