"""
Role based permission classes for the care API.
"""
from rest_framework.permissions import BasePermission

CLINICAL_ROLES = {"admin", "staff", "doctor"}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsStaffOrAdmin(BasePermission):
    """Front desk and administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in {"admin", "staff"}


class IsClinicalUser(BasePermission):
    """Admin, staff or doctor accounts."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in CLINICAL_ROLES

