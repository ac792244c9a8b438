"""
Database models for the clinic billing backend.

The clinical side (patients, visits, medical records, rooms and bed
assignments) is modelled only as far as billing needs it.  The
financial side follows three rules: a Billing is never deleted, a
BillingItem never changes after it is written and a Payment is an
append-only event.  Derived columns on Billing (totals, paid amount,
status) are recomputed by the services in ``billing.services``.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone

ZERO = Decimal('0.00')


class User(AbstractUser):
    """Staff account with a single RBAC role."""
    ROLE_CHOICES = [
        ('super_admin', 'Super Admin'),
        ('admin', 'Administrator'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('pharmacist', 'Pharmacist'),
        ('cashier', 'Cashier'),
        ('receptionist', 'Receptionist'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='receptionist', db_index=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    name = models.CharField(max_length=255)
    # 病历号 / nomor rekam medis
    mr_number = models.CharField(max_length=32, unique=True)
    national_id = models.CharField(max_length=32, blank=True, db_index=True, help_text="NIK")
    phone = models.CharField(max_length=32, blank=True)
    insurance_type = models.CharField(max_length=32, blank=True, help_text="e.g. umum, bpjs")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.mr_number})"


class Visit(models.Model):
    TYPE_OUTPATIENT = 'outpatient'
    TYPE_INPATIENT = 'inpatient'
    TYPE_EMERGENCY = 'emergency'
    TYPE_CHOICES = [
        (TYPE_OUTPATIENT, 'Outpatient'),
        (TYPE_INPATIENT, 'Inpatient'),
        (TYPE_EMERGENCY, 'Emergency'),
    ]

    STATUS_CHOICES = [
        ('registered', 'Registered'),
        ('waiting', 'Waiting'),
        ('in_examination', 'In examination'),
        ('examined', 'Examined'),
        ('ready_for_billing', 'Ready for billing'),
        ('billed', 'Billed'),
        ('paid', 'Paid'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='visits')
    visit_number = models.CharField(max_length=32, unique=True)
    visit_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_OUTPATIENT, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='registered', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.visit_number} ({self.visit_type})"


class MedicalRecord(models.Model):
    """Clinical record of a visit.  Locking it hands the visit to the cashier."""
    visit = models.OneToOneField(Visit, on_delete=models.CASCADE, related_name='medical_record')
    is_locked = models.BooleanField(default=False, db_index=True)
    locked_at = models.DateTimeField(null=True, blank=True, db_index=True)
    locked_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='locked_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"record of {self.visit_id} ({'locked' if self.is_locked else 'open'})"


class Room(models.Model):
    room_number = models.CharField(max_length=16, unique=True)
    room_type = models.CharField(max_length=32)
    bed_count = models.PositiveIntegerField(default=1)
    available_beds = models.PositiveIntegerField(default=1)
    daily_rate = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(ZERO)]
    )
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.room_number} ({self.room_type})"


class Billing(models.Model):
    """Aggregate financial record for one visit.

    ``total_amount`` is ``max(0, subtotal - discount - insurance_coverage)``
    and ``subtotal`` already contains ``consultation_fee``.  ``paid_amount``
    caches the payment sum for listing; the payment path always re-sums
    the Payment rows under a row lock instead of trusting it.
    """
    STATUS_UNPAID = 'unpaid'
    STATUS_PARTIAL = 'partial'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = [
        (STATUS_UNPAID, 'Unpaid'),
        (STATUS_PARTIAL, 'Partially paid'),
        (STATUS_PAID, 'Paid'),
    ]

    visit = models.OneToOneField(Visit, on_delete=models.PROTECT, related_name='billing')
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    consultation_fee = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    discount = models.DecimalField(
        max_digits=14, decimal_places=2, default=ZERO, validators=[MinValueValidator(ZERO)]
    )
    discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(ZERO), MaxValueValidator(Decimal('100.00'))],
    )
    insurance_coverage = models.DecimalField(
        max_digits=14, decimal_places=2, default=ZERO, validators=[MinValueValidator(ZERO)]
    )
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    payment_status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_UNPAID, db_index=True
    )
    notes = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='processed_billings'
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['payment_status', 'created_at'], name='billing_bil_payment_8f3b1c_idx'),
        ]

    @property
    def remaining_amount(self) -> Decimal:
        return max(ZERO, self.total_amount - self.paid_amount)

    def __str__(self) -> str:
        return f"billing visit={self.visit_id} total={self.total_amount} ({self.payment_status})"


class BillingItem(models.Model):
    TYPE_DRUG = 'drug'
    TYPE_SERVICE = 'service'
    TYPE_MATERIAL = 'material'
    TYPE_ROOM = 'room'
    TYPE_LABORATORY = 'laboratory'
    TYPE_CHOICES = [
        (TYPE_DRUG, 'Drug'),
        (TYPE_SERVICE, 'Service'),
        (TYPE_MATERIAL, 'Material'),
        (TYPE_ROOM, 'Room'),
        (TYPE_LABORATORY, 'Laboratory'),
    ]

    billing = models.ForeignKey(Billing, on_delete=models.PROTECT, related_name='items')
    item_type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    item_name = models.CharField(max_length=255)
    item_code = models.CharField(max_length=64, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(ZERO)])
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['billing', 'item_type'], name='billing_bil_billing_2d7e4a_idx')]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError('billing items are immutable')
        self.total_price = Decimal(self.quantity) * self.unit_price - self.discount
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.item_type}:{self.item_name} x{self.quantity}"


class BedAssignment(models.Model):
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name='bed_assignments')
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='assignments')
    bed_number = models.CharField(max_length=8)
    assigned_at = models.DateTimeField(default=timezone.now)
    released_at = models.DateTimeField(null=True, blank=True)
    billing_item = models.OneToOneField(
        BillingItem, null=True, blank=True, on_delete=models.SET_NULL, related_name='bed_assignment'
    )

    class Meta:
        indexes = [
            models.Index(fields=['room', 'released_at'], name='billing_bed_room_id_5a9c0e_idx'),
            models.Index(fields=['visit', 'released_at'], name='billing_bed_visit_i_7b1d2f_idx'),
        ]

    def __str__(self) -> str:
        return f"visit={self.visit_id} room={self.room_id} bed={self.bed_number}"


class Payment(models.Model):
    METHOD_CASH = 'cash'
    METHOD_TRANSFER = 'transfer'
    METHOD_CARD = 'card'
    METHOD_CHOICES = [
        (METHOD_CASH, 'Cash'),
        (METHOD_TRANSFER, 'Bank transfer'),
        (METHOD_CARD, 'Debit/credit card'),
    ]

    billing = models.ForeignKey(Billing, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    payment_method = models.CharField(max_length=16, choices=METHOD_CHOICES, db_index=True)
    payment_reference = models.CharField(max_length=64, blank=True)
    amount_received = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    change_given = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    received_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='received_payments'
    )
    received_at = models.DateTimeField(default=timezone.now, db_index=True)
    notes = models.TextField(blank=True)

    class Meta:
        indexes = [models.Index(fields=['billing', 'received_at'], name='billing_pay_billing_4c6e8a_idx')]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError('payments are immutable')
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"payment {self.amount} ({self.payment_method}) billing={self.billing_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='billing_aud_action_9e2f3b_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='billing_aud_object__1a4c5d_idx'),
        ]
