# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# They describe what the staff member does at the mill.
ROLE_ADMIN = "admin"
ROLE_GENERAL_MANAGER = "general_manager"
ROLE_WAREHOUSE_MANAGER = "warehouse_manager"
ROLE_PRODUCTION_MANAGER = "production_manager"
ROLE_SALES_MANAGER = "sales_manager"
ROLE_CASHIER = "cashier"
ROLE_EMPLOYEE = "employee"


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"          # record movements, item metadata
CAP_INVENTORY_ADJUST = "inventory.adjust"      # damage write-offs, ledger audit
CAP_INVENTORY_TRANSFER = "inventory.transfer"

CAP_CATALOG_EDIT = "catalog.edit"              # products + warehouses master data

CAP_PURCHASES_MANAGE = "purchases.manage"
CAP_SALES_SELL = "sales.sell"
CAP_SALES_CANCEL = "sales.cancel"
CAP_PRODUCTION_MANAGE = "production.manage"

CAP_STAFF_VIEW = "staff.view"
CAP_STAFF_MANAGE = "staff.manage"              # employees + attendance marking

CAP_REPORTS_VIEW = "reports.view"

ALL_CAPABILITIES = {
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_TRANSFER,
    CAP_CATALOG_EDIT,
    CAP_PURCHASES_MANAGE,
    CAP_SALES_SELL,
    CAP_SALES_CANCEL,
    CAP_PRODUCTION_MANAGE,
    CAP_STAFF_VIEW,
    CAP_STAFF_MANAGE,
    CAP_REPORTS_VIEW,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        # admin can do everything
        *ALL_CAPABILITIES,
    },
    ROLE_GENERAL_MANAGER: {
        *ALL_CAPABILITIES,
    },
    ROLE_WAREHOUSE_MANAGER: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_ADJUST,
        CAP_INVENTORY_TRANSFER,
        CAP_CATALOG_EDIT,
        CAP_PURCHASES_MANAGE,
        CAP_STAFF_VIEW,
    },
    ROLE_PRODUCTION_MANAGER: {
        CAP_INVENTORY_VIEW,
        CAP_PRODUCTION_MANAGE,
        CAP_STAFF_VIEW,
        CAP_STAFF_MANAGE,
    },
    ROLE_SALES_MANAGER: {
        CAP_INVENTORY_VIEW,
        CAP_SALES_SELL,
        CAP_SALES_CANCEL,
        CAP_REPORTS_VIEW,
    },
    ROLE_CASHIER: {
        CAP_INVENTORY_VIEW,
        CAP_SALES_SELL,
        # no cancel
    },
    ROLE_EMPLOYEE: {
        CAP_INVENTORY_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities granted by the user's role.

    Superusers get everything regardless of role (Django admin bootstrap).
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_INVENTORY_EDIT
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # unset means deny
            return False

        caps = effective_capabilities_for(request, user)
        return required in caps


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return any(cap in caps for cap in set(required))
