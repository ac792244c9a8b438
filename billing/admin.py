"""
Django admin registrations for the billing models.

Bills, items and payments are shown read-only: money only moves
through the API, where totals and balances are kept consistent.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    BedAssignment,
    Billing,
    BillingItem,
    MedicalRecord,
    Patient,
    Payment,
    Room,
    User,
    Visit,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_active', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('mr_number', 'name', 'national_id', 'insurance_type', 'created_at')
    search_fields = ('mr_number', 'name', 'national_id')


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ('visit_number', 'patient', 'visit_type', 'status', 'created_at')
    list_filter = ('visit_type', 'status')
    search_fields = ('visit_number', 'patient__name', 'patient__mr_number')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('visit', 'is_locked', 'locked_at', 'locked_by')
    list_filter = ('is_locked',)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'room_type', 'bed_count', 'available_beds', 'daily_rate', 'is_active')
    list_filter = ('room_type', 'is_active')


@admin.register(BedAssignment)
class BedAssignmentAdmin(ReadOnlyAdmin):
    list_display = ('visit', 'room', 'bed_number', 'assigned_at', 'released_at')


class BillingItemInline(admin.TabularInline):
    model = BillingItem
    extra = 0
    can_delete = False
    readonly_fields = ('item_type', 'item_name', 'quantity', 'unit_price', 'discount', 'total_price')
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = ('amount', 'payment_method', 'amount_received', 'change_given', 'received_by', 'received_at')
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Billing)
class BillingAdmin(ReadOnlyAdmin):
    list_display = ('visit', 'total_amount', 'paid_amount', 'payment_status', 'processed_at')
    list_filter = ('payment_status',)
    search_fields = ('visit__visit_number', 'visit__patient__name', 'visit__patient__mr_number')
    inlines = [BillingItemInline, PaymentInline]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ('id', 'billing', 'amount', 'payment_method', 'received_by', 'received_at')
    list_filter = ('payment_method',)


@admin.register(AuditEvent)
class AuditEventAdmin(ReadOnlyAdmin):
    list_display = ('created_at', 'action', 'user', 'object_type', 'object_id')
    list_filter = ('action',)
