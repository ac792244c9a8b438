"""
Billing endpoints used by the cashier desk.

Bills are read, (re)calculated and charged per visit; payments are posted
against the visit's bill.  Business rules live in ``billing.services``;
these views only validate input, call the service and shape the JSON.
"""
from __future__ import annotations

from django.conf import settings
from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.exceptions import NotFoundError
from billing.models import Billing, Payment, Visit
from billing.permissions import CanReadBilling, CanWriteBilling
from billing.serializers.billing import CalculateSerializer, ChargeCreateSerializer, PaymentCreateSerializer
from billing.services.calculator import calculate
from billing.services.charges import breakdown_by_type, record_charge
from billing.services.notifier import default_notifier
from billing.services.payments import process_payment
from billing.services.queue import serialize_billing_summary
from billing.services.reports import billing_statistics, can_discharge, receipt_number

STATS_CACHE_KEY = 'billing:stats'


def serialize_payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'billingId': p.billing_id,
        'amount': str(p.amount),
        'paymentMethod': p.payment_method,
        'paymentReference': p.payment_reference or None,
        'amountReceived': str(p.amount_received) if p.amount_received is not None else None,
        'changeGiven': str(p.change_given),
        'receivedAt': p.received_at.isoformat(),
        'receivedBy': p.received_by.username if p.received_by else None,
        'notes': p.notes or None,
    }


def serialize_billing(billing: Billing) -> dict:
    data = serialize_billing_summary(billing)
    data.update({
        'visitId': billing.visit_id,
        'consultationFee': str(billing.consultation_fee),
        'discountPercentage': str(billing.discount_percentage) if billing.discount_percentage is not None else None,
        'notes': billing.notes or None,
        'processedBy': billing.processed_by.username if billing.processed_by else None,
        'processedAt': billing.processed_at.isoformat() if billing.processed_at else None,
        'createdAt': billing.created_at.isoformat(),
        'updatedAt': billing.updated_at.isoformat(),
    })
    return data


def serialize_item(item) -> dict:
    return {
        'id': item.id,
        'itemType': item.item_type,
        'itemName': item.item_name,
        'itemCode': item.item_code or None,
        'quantity': item.quantity,
        'unitPrice': str(item.unit_price),
        'discount': str(item.discount),
        'totalPrice': str(item.total_price),
        'description': item.description or None,
        'createdAt': item.created_at.isoformat(),
    }


def _get_visit(visit_id: int) -> Visit:
    visit = Visit.objects.select_related('patient').filter(id=visit_id).first()
    if not visit:
        raise NotFoundError('Visit not found', code='visit_not_found')
    return visit


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWriteBilling])
def create_payment(request):
    """Post a payment against the bill of ``visitId``."""
    s = PaymentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    billing = Billing.objects.filter(visit_id=vd['visitId']).first()
    if not billing:
        raise NotFoundError('Billing not found for this visit', code='payment_target_not_found',
                            details={'visitId': vd['visitId']})

    payment = process_payment(
        billing.id,
        vd['amount'],
        vd['paymentMethod'],
        amount_received=vd.get('amountReceived'),
        notes=vd.get('notes'),
        payment_reference=vd.get('paymentReference'),
        cashier=request.user,
        notifier=default_notifier(),
    )
    cache.delete(STATS_CACHE_KEY)
    billing.refresh_from_db()
    data = serialize_payment(payment)
    data['billing'] = serialize_billing_summary(billing)
    data['receiptNumber'] = receipt_number(billing, payment.received_at)
    return Response({'ok': True, 'data': data}, status=201)

create_payment.cls.throttle_scope = 'payment'


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadBilling])
def billing_detail(request, visit_id: int):
    """Bill of a visit with items, payments and a per-type breakdown."""
    visit = _get_visit(visit_id)
    billing = (
        Billing.objects.select_related('processed_by')
        .prefetch_related('items', 'payments__received_by')
        .filter(visit=visit)
        .first()
    )
    if not billing:
        raise NotFoundError('Billing not found for this visit', code='billing_not_found',
                            details={'visitId': visit.id})
    patient = visit.patient
    return Response({'ok': True, 'data': {
        'billing': serialize_billing(billing),
        'items': [serialize_item(i) for i in billing.items.all().order_by('created_at', 'id')],
        'payments': [serialize_payment(p) for p in billing.payments.all().order_by('received_at', 'id')],
        'breakdown': breakdown_by_type(billing),
        'visit': {
            'id': visit.id,
            'visitNumber': visit.visit_number,
            'visitType': visit.visit_type,
            'status': visit.status,
        },
        'patient': {
            'id': patient.id,
            'name': patient.name,
            'mrNumber': patient.mr_number,
            'nationalId': patient.national_id or None,
            'insuranceType': patient.insurance_type or None,
        },
        'canDischarge': can_discharge(visit),
    }})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWriteBilling])
def calculate_billing(request, visit_id: int):
    s = CalculateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    billing = calculate(
        visit_id,
        discount=vd.get('discount'),
        discount_percentage=vd.get('discountPercentage'),
        insurance_coverage=vd.get('insuranceCoverage'),
        user=request.user,
    )
    cache.delete(STATS_CACHE_KEY)
    return Response({'ok': True, 'data': serialize_billing(billing)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWriteBilling])
def add_billing_item(request, visit_id: int):
    s = ChargeCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    visit = _get_visit(visit_id)
    item = record_charge(
        visit,
        vd['itemType'],
        vd['itemName'],
        vd['quantity'],
        vd['unitPrice'],
        discount=vd.get('discount'),
        item_code=vd.get('itemCode'),
        description=vd.get('description'),
    )
    cache.delete(STATS_CACHE_KEY)
    return Response({'ok': True, 'data': serialize_item(item)}, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadBilling])
def billing_stats(request):
    """Dashboard counters, cached for ``BILLING_STATS_CACHE_SECONDS``."""
    cached = cache.get(STATS_CACHE_KEY)
    if cached:
        return Response(cached)
    payload = {'ok': True, 'data': billing_statistics()}
    cache.set(STATS_CACHE_KEY, payload, settings.BILLING_STATS_CACHE_SECONDS)
    return Response(payload)
