"""
Request validation for the billing endpoints.

Field names follow the front-end's camelCase payloads.
"""
from decimal import Decimal

import bleach
from rest_framework import serializers

from billing.models import BillingItem, Payment, Visit

MONEY = dict(max_digits=14, decimal_places=2)


class PaymentCreateSerializer(serializers.Serializer):
    visitId = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(min_value=Decimal('0.01'), **MONEY)
    paymentMethod = serializers.ChoiceField(choices=[m for m, _ in Payment.METHOD_CHOICES])
    amountReceived = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)
    paymentReference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)

    def validate_notes(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)

    def validate(self, attrs):
        if attrs['paymentMethod'] == Payment.METHOD_CASH:
            received = attrs.get('amountReceived')
            if received is None:
                raise serializers.ValidationError({'amountReceived': 'Required for cash payments'})
            if received < attrs['amount']:
                raise serializers.ValidationError(
                    {'amountReceived': 'Amount received must be at least the payment amount'}
                )
        return attrs


class CalculateSerializer(serializers.Serializer):
    discount = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)
    discountPercentage = serializers.DecimalField(
        required=False, allow_null=True, max_digits=5, decimal_places=2,
        min_value=Decimal('0'), max_value=Decimal('100'),
    )
    insuranceCoverage = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)

    def validate(self, attrs):
        if attrs.get('discount') is not None and attrs.get('discountPercentage') is not None:
            raise serializers.ValidationError('Use either discount or discountPercentage, not both')
        return attrs


class ChargeCreateSerializer(serializers.Serializer):
    itemType = serializers.ChoiceField(choices=[t for t, _ in BillingItem.TYPE_CHOICES])
    itemName = serializers.CharField(max_length=255)
    itemCode = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(min_value=Decimal('0'), **MONEY)
    discount = serializers.DecimalField(default=Decimal('0'), min_value=Decimal('0'), **MONEY)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_itemName(self, v):
        v = bleach.clean((v or '').strip(), tags=set(), strip=True)
        if not v:
            raise serializers.ValidationError('Item name is required')
        return v


class QueueQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, max_length=100)


class TransactionQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    paymentMethod = serializers.ChoiceField(required=False, choices=[m for m, _ in Payment.METHOD_CHOICES])
    visitType = serializers.ChoiceField(required=False, choices=[t for t, _ in Visit.TYPE_CHOICES])
    dateFrom = serializers.DateField(required=False)
    dateTo = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)
