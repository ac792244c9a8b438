"""
Bed assignment for inpatient visits and charging of the stay.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional

from django.db import transaction
from django.utils import timezone

from billing.exceptions import ConflictError, NotFoundError, ValidationError
from billing.models import BedAssignment, BillingItem, MedicalRecord, Room, Visit
from billing.services.audit import log_action
from billing.services.charges import record_charge

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def stay_days(assigned_at: datetime, released_at: datetime) -> int:
    """Number of billable days: started days, at least one."""
    seconds = (released_at - assigned_at).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def assign_bed(visit_id: int, room_id: int, bed_number: str, user=None) -> BedAssignment:
    bed_number = str(bed_number or '').strip()
    if not bed_number:
        raise ValidationError('Bed number is required', details={'bedNumber': bed_number})

    with transaction.atomic():
        visit = Visit.objects.select_for_update().filter(id=visit_id).first()
        if not visit:
            raise NotFoundError('Visit not found', code='visit_not_found')
        if visit.visit_type != Visit.TYPE_INPATIENT:
            raise ValidationError('Only inpatient visits can be assigned a bed',
                                  details={'visitType': visit.visit_type})
        if MedicalRecord.objects.filter(visit=visit, is_locked=True).exists():
            raise ConflictError('Medical record is already locked', code='record_locked',
                                details={'visitId': visit.id})
        room = Room.objects.select_for_update().filter(id=room_id).first()
        if not room:
            raise NotFoundError('Room not found', code='room_not_found')
        if not room.is_active or room.available_beds <= 0:
            raise ConflictError('No bed available in this room', code='bed_unavailable',
                                details={'roomId': room.id, 'availableBeds': room.available_beds})
        if BedAssignment.objects.filter(visit=visit, released_at__isnull=True).exists():
            raise ConflictError('Visit already has a bed', code='bed_unavailable',
                                details={'visitId': visit.id})
        if BedAssignment.objects.filter(room=room, bed_number=bed_number, released_at__isnull=True).exists():
            raise ConflictError('Bed is occupied', code='bed_unavailable',
                                details={'roomId': room.id, 'bedNumber': bed_number})

        assignment = BedAssignment.objects.create(visit=visit, room=room, bed_number=bed_number)
        room.available_beds -= 1
        room.save(update_fields=['available_beds'])

        log_action(user=user, action='bed_assign', object_type='visit', object_id=visit.id,
                   detail={'roomId': room.id, 'bedNumber': bed_number})

    logger.info('visit %s assigned to room %s bed %s', visit.visit_number, room.room_number, bed_number)
    return assignment


def release_bed(visit_id: int, user=None, released_at: Optional[datetime] = None) -> BedAssignment:
    """Free the visit's bed and charge the stay as a single room item.

    The record cannot be locked while a bed is held, so the bill is still
    open here and the charge always goes through.
    """
    with transaction.atomic():
        visit = Visit.objects.select_for_update().filter(id=visit_id).first()
        if not visit:
            raise NotFoundError('Visit not found', code='visit_not_found')
        assignment = (
            BedAssignment.objects.select_for_update()
            .select_related('room')
            .filter(visit=visit, released_at__isnull=True)
            .first()
        )
        if not assignment:
            raise ConflictError('Visit has no assigned bed', code='conflict', details={'visitId': visit.id})

        room = Room.objects.select_for_update().get(pk=assignment.room_id)
        assignment.released_at = released_at or timezone.now()

        if assignment.billing_item_id is None:
            days = stay_days(assignment.assigned_at, assignment.released_at)
            assignment.billing_item = record_charge(
                visit,
                BillingItem.TYPE_ROOM,
                f'Room {room.room_number} ({room.room_type})',
                quantity=days,
                unit_price=room.daily_rate,
                item_code=f'ROOM-{room.room_number}',
                description=f'Bed {assignment.bed_number}, {days} day(s)',
            )
        assignment.save(update_fields=['released_at', 'billing_item'])

        room.available_beds = min(room.bed_count, room.available_beds + 1)
        room.save(update_fields=['available_beds'])

        log_action(user=user, action='bed_release', object_type='visit', object_id=visit.id,
                   detail={'roomId': room.id, 'bedNumber': assignment.bed_number,
                           'billingItemId': assignment.billing_item_id})

    logger.info('visit %s released room %s bed %s', visit.visit_number, room.room_number, assignment.bed_number)
    return assignment
