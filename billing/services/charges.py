"""
Charging items to a visit's bill.
"""
from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import transaction

from billing.exceptions import ConflictError, ValidationError
from billing.models import Billing, BillingItem, MedicalRecord, Visit, ZERO
from billing.services.calculator import money, recalculate, to_decimal

logger = logging.getLogger(__name__)

ITEM_TYPES = {t for t, _ in BillingItem.TYPE_CHOICES}


def open_billing(visit: Visit) -> Billing:
    """Return the visit's bill, creating an empty unpaid one if needed."""
    billing, created = Billing.objects.get_or_create(visit=visit)
    if created:
        logger.info('billing opened for visit %s', visit.visit_number)
    return billing


def record_charge(visit: Visit, item_type: str, item_name: str, quantity, unit_price, discount=0,
                  item_code: Optional[str] = None, description: Optional[str] = None) -> BillingItem:
    """Append an immutable item to the visit's bill.

    While the medical record is still open the total is left alone; the
    lock runs the first calculation.  Once the record is locked the bill
    is recomputed in the same transaction, keeping its discount and
    insurance coverage.
    """
    if item_type not in ITEM_TYPES:
        raise ValidationError('Invalid item type', details={'itemType': item_type})
    name = bleach.clean((item_name or '').strip(), tags=set(), strip=True)
    if not name:
        raise ValidationError('Item name is required', details={'itemName': item_name})
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be an integer', details={'quantity': quantity})
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1', details={'quantity': quantity})
    unit_price = to_decimal(unit_price, 'unitPrice')
    if unit_price is None or unit_price < 0:
        raise ValidationError('Unit price cannot be negative', details={'unitPrice': str(unit_price)})
    discount = to_decimal(discount, 'discount') or ZERO
    gross = money(quantity * unit_price)
    if discount < 0 or discount > gross:
        raise ValidationError('Item discount must be between 0 and the item amount',
                              details={'discount': str(discount), 'amount': str(gross)})

    with transaction.atomic():
        billing = open_billing(visit)
        billing = Billing.objects.select_for_update().get(pk=billing.pk)
        if billing.payment_status == Billing.STATUS_PAID and billing.paid_amount > ZERO:
            raise ConflictError('Billing is already settled', code='billing_settled',
                                details={'billingId': billing.id})
        item = BillingItem.objects.create(
            billing=billing,
            item_type=item_type,
            item_name=name,
            item_code=item_code or '',
            quantity=quantity,
            unit_price=money(unit_price),
            discount=money(discount),
            description=bleach.clean((description or '').strip(), tags=set(), strip=True),
        )
        if MedicalRecord.objects.filter(visit=visit, is_locked=True).exists():
            visit.refresh_from_db(fields=['status'])
            recalculate(billing, visit)
    logger.info('charged %s "%s" x%s (%s) to visit %s', item_type, name, quantity, item.total_price, visit.visit_number)
    return item


def breakdown_by_type(billing: Billing) -> dict:
    """Amount and item count per item type, plus the consultation fee line."""
    result: dict[str, dict] = {t: {'amount': ZERO, 'count': 0} for t in sorted(ITEM_TYPES)}
    for item in billing.items.all():
        line = result[item.item_type]
        line['amount'] += item.total_price
        line['count'] += 1
    out = {t: {'amount': str(money(v['amount'])), 'count': v['count']} for t, v in result.items()}
    out['consultation'] = {'amount': str(money(billing.consultation_fee)), 'count': 1 if billing.consultation_fee else 0}
    return out
