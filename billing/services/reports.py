"""
Read-only reporting over bills and payments: dashboard statistics,
transaction history, receipt numbers and the discharge check.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from billing.models import Billing, Payment, Visit, ZERO
from billing.services.calculator import money


def billing_statistics() -> dict:
    agg = Billing.objects.aggregate(
        total=Count('id'),
        unpaid=Count('id', filter=Q(payment_status=Billing.STATUS_UNPAID)),
        partial=Count('id', filter=Q(payment_status=Billing.STATUS_PARTIAL)),
        paid=Count('id', filter=Q(payment_status=Billing.STATUS_PAID)),
        revenue=Sum('total_amount'),
    )
    pending = (
        Billing.objects.exclude(payment_status=Billing.STATUS_PAID)
        .aggregate(s=Sum(F('total_amount') - F('paid_amount')))['s']
        or ZERO
    )
    collected_today = (
        Payment.objects.filter(received_at__date=timezone.localdate())
        .aggregate(s=Sum('amount'))['s']
        or ZERO
    )
    return {
        'totalBillings': agg['total'] or 0,
        'unpaidBillings': agg['unpaid'] or 0,
        'partialBillings': agg['partial'] or 0,
        'paidBillings': agg['paid'] or 0,
        'totalRevenue': str(money(agg['revenue'] or ZERO)),
        'pendingRevenue': str(money(max(ZERO, pending))),
        'collectedToday': str(money(collected_today)),
    }


def receipt_number(billing: Billing, at: Optional[datetime] = None) -> str:
    """``RCP/YYYYMMDD/NNNNNN`` built from the bill id and the local date."""
    at = timezone.localtime(at) if at else timezone.localtime()
    return f"RCP/{at:%Y%m%d}/{billing.id:06d}"


def can_discharge(visit: Visit) -> bool:
    """A visit may be discharged once its bill exists and is fully paid."""
    billing = Billing.objects.filter(visit=visit).first()
    return bool(billing and billing.payment_status == Billing.STATUS_PAID)


def serialize_transaction(p: Payment) -> dict:
    billing = p.billing
    visit = billing.visit
    patient = visit.patient
    cashier = p.received_by
    return {
        'id': p.id,
        'amount': str(p.amount),
        'paymentMethod': p.payment_method,
        'paymentReference': p.payment_reference or None,
        'amountReceived': str(p.amount_received) if p.amount_received is not None else None,
        'changeGiven': str(p.change_given),
        'receivedAt': p.received_at.isoformat(),
        'notes': p.notes or None,
        'receiptNumber': receipt_number(billing, p.received_at),
        'billing': {
            'id': billing.id,
            'totalAmount': str(billing.total_amount),
            'paidAmount': str(billing.paid_amount),
            'paymentStatus': billing.payment_status,
        },
        'visit': {'id': visit.id, 'visitNumber': visit.visit_number, 'visitType': visit.visit_type},
        'patient': {'id': patient.id, 'name': patient.name, 'mrNumber': patient.mr_number},
        'cashier': {'id': cashier.id, 'username': cashier.username,
                    'name': cashier.get_full_name() or cashier.username} if cashier else None,
    }


def _transactions_qs():
    return Payment.objects.select_related('billing', 'billing__visit', 'billing__visit__patient', 'received_by')


def list_transactions(*, search: Optional[str] = None, payment_method: Optional[str] = None,
                      visit_type: Optional[str] = None, date_from: Optional[date] = None,
                      date_to: Optional[date] = None, page: int = 1, limit: int = 10):
    qs = _transactions_qs()
    if search:
        qs = qs.filter(
            Q(billing__visit__patient__name__icontains=search)
            | Q(billing__visit__patient__mr_number__icontains=search)
            | Q(billing__visit__visit_number__icontains=search)
        )
    if payment_method:
        qs = qs.filter(payment_method=payment_method)
    if visit_type:
        qs = qs.filter(billing__visit__visit_type=visit_type)
    # whole days, inclusive on both ends
    if date_from:
        qs = qs.filter(received_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(received_at__date__lte=date_to)

    total = qs.count()
    offset = (page - 1) * limit
    rows = qs.order_by('-received_at', '-id')[offset:offset + limit]
    return [serialize_transaction(p) for p in rows], {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': math.ceil(total / limit) if limit else 0,
    }


def get_transaction(payment_id: int) -> Optional[Payment]:
    return _transactions_qs().filter(id=payment_id).first()
