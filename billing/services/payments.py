"""
Payment processing.

Payments are appended to a bill one at a time.  Each one runs in its own
transaction holding a row lock on the bill, and the remaining balance is
always re-summed from the Payment table inside that lock, so two
cashiers paying the same bill concurrently cannot overpay it.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from billing.exceptions import NotFoundError, ValidationError
from billing.models import Billing, Payment, ZERO
from billing.services.audit import log_action
from billing.services.calculator import derive_status, money, to_decimal
from billing.services.visits import advance_visit

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {m for m, _ in Payment.METHOD_CHOICES}


def change_due(amount: Decimal, amount_received: Optional[Decimal]) -> Decimal:
    """Change handed back for a cash payment, never negative."""
    if amount_received is None:
        return ZERO
    return max(ZERO, money(amount_received - amount))


def _validate(amount, payment_method, amount_received):
    amount = to_decimal(amount, 'amount')
    if amount is None or amount <= 0:
        raise ValidationError('Payment amount must be greater than zero', details={'amount': str(amount)})
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError('Invalid payment method', details={'paymentMethod': payment_method})
    amount = money(amount)
    if payment_method == Payment.METHOD_CASH:
        amount_received = to_decimal(amount_received, 'amountReceived')
        if amount_received is None or amount_received < amount:
            raise ValidationError(
                'Amount received must be at least the payment amount for cash payments',
                details={'amount': str(amount), 'amountReceived': None if amount_received is None else str(amount_received)},
            )
        amount_received = money(amount_received)
    else:
        amount_received = None
    return amount, amount_received


def process_payment(billing_id: int, amount, payment_method: str, amount_received=None,
                    notes: Optional[str] = None, payment_reference: Optional[str] = None,
                    cashier=None, notifier=None) -> Payment:
    """Record one payment against a bill.

    Raises ``ValidationError`` for bad input or an amount above the
    remaining balance and ``NotFoundError`` when the bill does not exist.
    On success the bill's paid amount and status are updated and, once the
    transaction commits, ``notifier`` (if any) is told the queue changed.
    """
    amount, amount_received = _validate(amount, payment_method, amount_received)
    clean_notes = bleach.clean((notes or '').strip(), tags=set(), strip=True)
    reference = bleach.clean((payment_reference or '').strip(), tags=set(), strip=True)

    with transaction.atomic():
        billing = (
            Billing.objects.select_for_update()
            .select_related('visit')
            .filter(id=billing_id)
            .first()
        )
        if not billing:
            raise NotFoundError('Billing not found', code='payment_target_not_found')

        paid_before = Payment.objects.filter(billing=billing).aggregate(s=Sum('amount'))['s'] or ZERO
        remaining = max(ZERO, billing.total_amount - paid_before)
        if amount > remaining:
            logger.warning('payment of %s rejected for billing %s: remaining %s',
                           amount, billing.id, remaining)
            raise ValidationError(
                'Payment amount exceeds remaining balance',
                code='balance_exceeded',
                details={'amount': str(amount), 'remaining': str(remaining)},
            )

        now = timezone.now()
        payment = Payment.objects.create(
            billing=billing,
            amount=amount,
            payment_method=payment_method,
            payment_reference=reference,
            amount_received=amount_received,
            change_given=change_due(amount, amount_received),
            received_by=cashier if getattr(cashier, 'pk', None) else None,
            received_at=now,
            notes=clean_notes,
        )

        billing.paid_amount = money(paid_before + amount)
        billing.payment_status = derive_status(billing.total_amount, billing.paid_amount)
        billing.processed_by = payment.received_by
        billing.processed_at = now
        billing.save(update_fields=['paid_amount', 'payment_status', 'processed_by', 'processed_at', 'updated_at'])

        if billing.payment_status == Billing.STATUS_PAID:
            advance_visit(billing.visit, 'paid')

        log_action(user=cashier, action='payment_create', object_type='payment', object_id=payment.id,
                   detail={'billingId': billing.id, 'amount': str(amount), 'method': payment_method,
                           'status': billing.payment_status})

        if notifier is not None:
            visit_id, status = billing.visit_id, billing.payment_status
            transaction.on_commit(lambda: notifier.queue_changed(
                reason='payment', visit_id=visit_id, billing_id=billing_id, payment_status=status,
            ))

    logger.info('payment %s: %s %s on billing %s (%s, paid %s of %s)',
                payment.id, payment_method, amount, billing.id, billing.payment_status,
                billing.paid_amount, billing.total_amount)
    return payment
