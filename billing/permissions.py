"""
Role based permission classes for the billing API.
"""
from rest_framework.permissions import BasePermission

BILLING_READ_ROLES = {"super_admin", "admin", "cashier"}
BILLING_WRITE_ROLES = {"super_admin", "cashier"}
RECORD_LOCK_ROLES = {"super_admin", "doctor"}
BED_ROLES = {"super_admin", "nurse", "doctor"}


def _has_role(request, roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class CanReadBilling(BasePermission):
    """Cashier desk and administrators may view bills and payments."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, BILLING_READ_ROLES)


class CanWriteBilling(BasePermission):
    """Only cashiers (and super admin) may change bills or take payments."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, BILLING_WRITE_ROLES)


class CanLockRecords(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, RECORD_LOCK_ROLES)


class CanManageBeds(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, BED_ROLES)
