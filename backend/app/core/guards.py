"""
Security guards for role-based access control.

Provides dependencies and a class-based guard for protecting mutations.
Rules are evaluated in order, first match wins:

1. Deletions, user management and catalog/announcement mutations require
   admin privileges (system_admin or admin).
2. An admin may never read, create, update or delete a system_admin account,
   nor assign the system_admin role.
3. An admin may never delete another admin account.
4. Nobody may delete their own account (validation error, not 403).
"""

from typing import List
from fastapi import Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ForbiddenError, ValidationError
from backend.app.models.enums import UserRole
from backend.app.models.user import User


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/users")
        async def list_users(current_user: User = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        ForbiddenError 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise ForbiddenError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        return current_user

    return role_checker


# System admins and admins
require_admin_privileges = require_role([UserRole.SYSTEM_ADMIN, UserRole.ADMIN])


class UserManagementGuard:
    """
    Class-based guard for actions on other user accounts.

    Usage:
        user_guard = UserManagementGuard()

        @router.delete("/users/{user_id}")
        async def delete_user(user_id: int, current_user: User = Depends(require_admin_privileges), ...):
            target = await UserService.get_user(db, user_id)
            user_guard.ensure_can_delete(current_user, target)
    """

    def ensure_manager(self, actor: User) -> None:
        if not actor.has_admin_privileges:
            raise ForbiddenError("You do not have permission to manage users.")

    def ensure_can_view(self, actor: User, target: User) -> None:
        self.ensure_manager(actor)
        if actor.is_admin and target.is_system_admin:
            raise ForbiddenError("You do not have permission to manage system administrators.")

    def ensure_can_assign_role(self, actor: User, role: UserRole) -> None:
        self.ensure_manager(actor)
        if actor.is_admin and role == UserRole.SYSTEM_ADMIN:
            raise ForbiddenError("You do not have permission to assign the System Admin role.")

    def ensure_can_delete(self, actor: User, target: User) -> None:
        self.ensure_can_view(actor, target)
        if actor.is_admin and target.is_admin and target.id != actor.id:
            raise ForbiddenError("You do not have permission to delete other administrators.")
        if target.id == actor.id:
            raise ValidationError({"error": ["You cannot delete your own account."]})

    def visible_roles(self, actor: User) -> List[UserRole]:
        """Roles whose accounts ``actor`` may list."""
        if actor.is_system_admin:
            return list(UserRole)
        return [UserRole.ADMIN, UserRole.STAFF]

    def assignable_roles(self, actor: User) -> List[UserRole]:
        return self.visible_roles(actor)
