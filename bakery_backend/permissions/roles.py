# permissions/roles.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rest_framework.permissions import BasePermission

from orders.services.exceptions import OrderForbidden


# =========================================================
# ROLE CONSTANTS
# =========================================================
# Identity lives with the external auth provider; the backend only
# distinguishes customers from administrators.
ROLE_USER = "user"
ROLE_ADMIN = "admin"

ROLES = {
    ROLE_USER,
    ROLE_ADMIN,
}


# =========================================================
# PRINCIPAL
# =========================================================
@dataclass(frozen=True)
class Principal:
    """
    The acting identity for a service call.

    Services never look at request objects; views resolve the request user
    into a Principal and pass it down.
    """

    user_id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> Optional["Principal"]:
        if user is None or not getattr(user, "is_authenticated", False):
            return None

        role = get_user_role(user) or ROLE_USER
        if role not in ROLES:
            role = ROLE_USER

        return cls(user_id=str(user.pk), role=role)


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def owns(principal: Principal, owner_id) -> bool:
    if principal is None or owner_id is None:
        return False
    return str(owner_id) == str(principal.user_id)


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


class IsAdmin(BaseRolePermission):
    allowed_roles = {ROLE_ADMIN}


# =========================================================
# Object-level: order access
# =========================================================
def can_access_order(principal: Optional[Principal], order, *, allow_admin: bool = True) -> bool:
    if principal is None:
        return False
    if allow_admin and principal.is_admin:
        return True
    return owns(principal, getattr(order, "user_id", None))


def assert_can_access_order(principal: Optional[Principal], order, *, allow_admin: bool = True) -> None:
    """
    The single ownership check consulted by every order and payment
    operation. Admins pass unless allow_admin is False (e.g. reviews).
    """
    if not can_access_order(principal, order, allow_admin=allow_admin):
        raise OrderForbidden("Not authorized to access this order")
