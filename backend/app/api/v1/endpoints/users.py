"""
User management API endpoints (Admin / System Admin).

Every action on another account goes through ``UserManagementGuard``:
admins cannot see or touch system administrators, cannot delete other
admins, and nobody can delete their own account.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.user import RoleOption, UserCreate, UserResponse, UserUpdate
from backend.app.core.guards import UserManagementGuard, require_admin_privileges
from backend.app.services.pagination import admin_per_page
from backend.app.services.transformers import pagination_meta
from backend.app.services.user_service import UserService

router = APIRouter(prefix="/admin/users", tags=["Admin Users"])

user_guard = UserManagementGuard()


def _user_payload(user: User) -> dict:
    return UserResponse.from_user(user).model_dump(mode="json")


@router.get("")
async def list_users(
    search: Optional[str] = Query(None, max_length=255),
    per_page: Optional[int] = Query(None, alias="perPage"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    """
    List the accounts the current user may manage.

    Admins do not see system administrators.
    """
    per_page = admin_per_page(per_page)
    users, total = await UserService.list_users(
        db, user_guard.visible_roles(current_user), search, page, per_page
    )
    return success_response(
        [_user_payload(user) for user in users],
        meta=pagination_meta(total, page, per_page, len(users)),
        filters={"search": search or "", "perPage": per_page},
    )


@router.get("/roles")
async def assignable_roles(current_user: User = Depends(require_admin_privileges)):
    """Roles the current user may assign."""
    options = [
        RoleOption(value=role, label=role.display_name).model_dump(mode="json")
        for role in user_guard.assignable_roles(current_user)
    ]
    return success_response(options)


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    target = await UserService.get_user(db, user_id)
    user_guard.ensure_can_view(current_user, target)
    return success_response(_user_payload(target))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    user_guard.ensure_can_assign_role(current_user, data.role)
    user = await UserService.create_from_request(db, data)
    return success_response(_user_payload(user), message="User created successfully.")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    """Update name, email, password or role; omitted fields stay unchanged."""
    target = await UserService.get_user(db, user_id)
    user_guard.ensure_can_view(current_user, target)
    if data.role is not None:
        user_guard.ensure_can_assign_role(current_user, data.role)
    user = await UserService.update_user(db, target, data)
    return success_response(_user_payload(user), message="User updated successfully.")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    target = await UserService.get_user(db, user_id)
    user_guard.ensure_can_delete(current_user, target)
    await UserService.delete_user(db, target)
    return success_response(message="User deleted successfully.")
