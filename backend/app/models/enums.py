"""
Enumerations for user roles and product types.

Each enum carries a pure mapping to the display label shown in the admin UI
and exposed by the public API.
"""

import enum
from typing import List


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles (highest first):
        SYSTEM_ADMIN: Full access, including other administrators
        ADMIN: Manages content and staff accounts
        STAFF: Manages content, cannot delete or manage users (default role)
    """
    SYSTEM_ADMIN = "system_admin"
    ADMIN = "admin"
    STAFF = "staff"

    @property
    def display_name(self) -> str:
        return _ROLE_LABELS[self]

    @property
    def has_admin_privileges(self) -> bool:
        return self in (UserRole.SYSTEM_ADMIN, UserRole.ADMIN)

    @classmethod
    def values(cls) -> List[str]:
        return [role.value for role in cls]


_ROLE_LABELS = {
    UserRole.SYSTEM_ADMIN: "System Admin",
    UserRole.ADMIN: "Admin",
    UserRole.STAFF: "Staff",
}


class ProductType(str, enum.Enum):
    """Catalog product categories."""
    MEDICAL_SUPPLIES = "medical_supplies"
    MEDICAL_EQUIPMENT = "medical_equipment"

    @property
    def display_name(self) -> str:
        return _PRODUCT_TYPE_LABELS[self]

    @classmethod
    def values(cls) -> List[str]:
        return [product_type.value for product_type in cls]


_PRODUCT_TYPE_LABELS = {
    ProductType.MEDICAL_SUPPLIES: "Medical Supplies",
    ProductType.MEDICAL_EQUIPMENT: "Medical Equipment",
}
