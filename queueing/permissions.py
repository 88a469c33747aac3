"""
Role based permission classes for staff endpoints.
"""
from rest_framework.permissions import BasePermission

STAFF_ROLES = {"admin", "doctor", "nurse", "pharmacist", "receptionist", "technician"}


class IsStaffRole(BasePermission):
    """Any hospital staff role may operate the queue."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in STAFF_ROLES)
