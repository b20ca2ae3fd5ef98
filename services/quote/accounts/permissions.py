"""Role checks shared by every API in the service."""
from __future__ import annotations

from rest_framework.permissions import BasePermission

from .models import User


def account_for(request) -> User | None:
    return getattr(request.user, "record", None)


class HasAccount(BasePermission):
    """Signed in with a user record attached."""

    message = "Authentication credentials were not provided."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return bool(request.user and request.user.is_authenticated and account_for(request))


class IsAdminRole(HasAccount):
    message = {
        "detail": "Administrator access required.",
        "redirect": "/dashboard",
    }

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if not super().has_permission(request, view):
            return False
        return account_for(request).is_admin
