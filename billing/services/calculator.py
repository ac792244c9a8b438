"""
Bill calculation.

A visit's bill is the sum of its charged items plus the consultation fee
for the visit type, less a discount (flat or percentage) and whatever the
insurer covers.  The result is written onto the visit's ``Billing`` row,
which is created on first calculation and overwritten on every later one.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Sum

from billing.exceptions import ConflictError, NotFoundError, ValidationError
from billing.models import Billing, BillingItem, MedicalRecord, Payment, Visit, ZERO
from billing.services.audit import log_action
from billing.services.visits import advance_visit

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def money(value) -> Decimal:
    """Quantize to cents, rounding half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f'{field} must be a number', details={field: str(value)})
    if not d.is_finite():
        raise ValidationError(f'{field} must be a finite number', details={field: str(value)})
    return d


def consultation_fee(visit_type: str) -> Decimal:
    return money(settings.CONSULTATION_FEES.get(visit_type, ZERO))


def derive_status(total: Decimal, paid: Decimal) -> str:
    """unpaid / partial / paid from the bill total and the sum paid so far.

    A zero total counts as settled.
    """
    if paid >= total:
        return Billing.STATUS_PAID
    if paid > ZERO:
        return Billing.STATUS_PARTIAL
    return Billing.STATUS_UNPAID


def compute_totals(items_total: Decimal, fee: Decimal, *, discount: Optional[Decimal] = None,
                   discount_percentage: Optional[Decimal] = None,
                   insurance_coverage: Optional[Decimal] = None) -> dict:
    """Pure arithmetic of a bill; no database access."""
    subtotal = money(items_total + fee)
    if discount_percentage is not None:
        discount_amount = money(subtotal * discount_percentage / HUNDRED)
    else:
        discount_amount = money(discount or ZERO)
    insurance = money(insurance_coverage or ZERO)
    total = max(ZERO, money(subtotal - discount_amount - insurance))
    return {
        'subtotal': subtotal,
        'consultation_fee': money(fee),
        'discount': discount_amount,
        'discount_percentage': discount_percentage,
        'insurance_coverage': insurance,
        'total_amount': total,
    }


def _validate_inputs(discount, discount_percentage, insurance_coverage):
    discount = to_decimal(discount, 'discount')
    discount_percentage = to_decimal(discount_percentage, 'discountPercentage')
    insurance_coverage = to_decimal(insurance_coverage, 'insuranceCoverage')
    if discount is not None and discount < 0:
        raise ValidationError('Discount cannot be negative', details={'discount': str(discount)})
    if discount_percentage is not None and not (ZERO <= discount_percentage <= HUNDRED):
        raise ValidationError('Discount percentage must be between 0 and 100',
                              details={'discountPercentage': str(discount_percentage)})
    if insurance_coverage is not None and insurance_coverage < 0:
        raise ValidationError('Insurance coverage cannot be negative',
                              details={'insuranceCoverage': str(insurance_coverage)})
    return discount, discount_percentage, insurance_coverage


def calculate(visit_id: int, discount=None, discount_percentage=None, insurance_coverage=None,
              user=None) -> Billing:
    """Compute and persist the bill of a visit whose medical record is locked.

    The percentage discount wins when both kinds are passed.  Calling it
    again with the same inputs yields the same totals and the same row.
    """
    discount, discount_percentage, insurance_coverage = _validate_inputs(
        discount, discount_percentage, insurance_coverage
    )

    visit = Visit.objects.select_related('patient').filter(id=visit_id).first()
    if not visit:
        raise NotFoundError('Visit not found', code='visit_not_found')
    record = MedicalRecord.objects.filter(visit=visit).first()
    if not record:
        raise NotFoundError('Medical record not found', code='record_not_found')
    if not record.is_locked:
        raise NotFoundError('Medical record is not locked yet', code='record_not_found')

    with transaction.atomic():
        billing, _ = Billing.objects.get_or_create(visit=visit)
        billing = Billing.objects.select_for_update().get(pk=billing.pk)
        return _apply_totals(
            billing, visit,
            discount=discount,
            discount_percentage=discount_percentage,
            insurance_coverage=insurance_coverage,
            user=user,
        )


def recalculate(billing: Billing, visit: Visit, user=None) -> Billing:
    """Recompute a bill after its items changed, keeping its discount and insurance.

    The caller must hold the row lock on ``billing``.
    """
    pct = billing.discount_percentage
    return _apply_totals(
        billing, visit,
        discount=None if pct is not None else billing.discount,
        discount_percentage=pct,
        insurance_coverage=billing.insurance_coverage,
        user=user,
    )


def _apply_totals(billing: Billing, visit: Visit, *, discount, discount_percentage, insurance_coverage,
                  user=None) -> Billing:
    items_total = (
        BillingItem.objects.filter(billing=billing).aggregate(s=Sum('total_price'))['s'] or ZERO
    )
    totals = compute_totals(
        items_total,
        consultation_fee(visit.visit_type),
        discount=discount,
        discount_percentage=discount_percentage,
        insurance_coverage=insurance_coverage,
    )

    paid = Payment.objects.filter(billing=billing).aggregate(s=Sum('amount'))['s'] or ZERO
    if paid > totals['total_amount']:
        logger.warning('recalculation of visit %s rejected: total %s below paid %s',
                       visit.visit_number, totals['total_amount'], paid)
        raise ConflictError(
            'New total is below the amount already paid',
            code='total_below_paid',
            details={'totalAmount': str(totals['total_amount']), 'paidAmount': str(paid)},
        )

    for field, value in totals.items():
        setattr(billing, field, value)
    billing.paid_amount = money(paid)
    billing.payment_status = derive_status(billing.total_amount, billing.paid_amount)
    billing.save()

    advance_visit(visit, 'billed')
    if billing.payment_status == Billing.STATUS_PAID:
        advance_visit(visit, 'paid')

    log_action(user=user, action='billing_calculate', object_type='billing', object_id=billing.id,
               detail={'visitId': visit.id, 'subtotal': str(billing.subtotal),
                       'discount': str(billing.discount), 'total': str(billing.total_amount)})

    logger.info('billing calculated for visit %s: subtotal=%s total=%s status=%s',
                visit.visit_number, billing.subtotal, billing.total_amount, billing.payment_status)
    return billing
