"""Role-based DRF permissions.

The JWT only proves *who* the caller is; these classes gate endpoints on
the marketplace role stored on the user (``farmer`` or ``buyer``).
Per-order authorization (is the caller a party of *this* order?) is a
business rule and lives in ``OrderService``.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.users.models import UserRole


class _HasRole(BasePermission):
    role: str = ""

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and getattr(user, "role", None) == self.role
        )


class IsFarmer(_HasRole):
    message = "Access denied. Farmer role required."
    role = UserRole.FARMER


class IsBuyer(_HasRole):
    message = "Access denied. Buyer role required."
    role = UserRole.BUYER
