"""
User Management API Routes - listing, profiles and account maintenance.

Every route requires an authenticated user. Routes addressing a user by id
only let callers modify or delete their own account.
"""

from fastapi import APIRouter, Depends, Query

from app.db_handlers.user import UserDBHandler
from app.dependencies.auth import get_current_user
from app.dependencies.ownership import owned_user
from app.errors import AppError, DuplicateError, NotFoundError, ValidationError
from app.models import User
from app.schemas import (
    ChangePasswordRequest,
    UserUpdateRequest,
    serialize_user,
    success,
)
from app.utils.auth import get_password_hash, verify_password
from app.utils.logger import setup_logger
from app.utils.text_processing import build_pagination
from app.utils.validators import parse_identifier

logger = setup_logger("api.users")

router = APIRouter(prefix="/api/users", tags=["User Management"])


async def _apply_profile_update(
    target: User, update: UserUpdateRequest, user_db_handler: UserDBHandler
) -> User:
    if "username" in update.model_fields_set:
        raise ValidationError({"username": "Username cannot be changed"})
    if "password" in update.model_fields_set:
        raise ValidationError(
            {"password": "Use /users/change-password to update password"}
        )

    changes = update.profile_changes()
    if changes.get("email") and changes["email"] != target.email:
        holder = await user_db_handler.get_user_by_email(changes["email"])
        if holder is not None and holder.id != target.id:
            raise DuplicateError("Email already in use")

    updated = await user_db_handler.update(target, changes)
    logger.info(f"User {updated.id} updated fields: {sorted(changes)}")
    return updated


@router.get("")
@router.get("/", include_in_schema=False)
async def list_users(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Users per page"),
    search: str | None = Query(None, description="Match on username or email"),
    current_user: User = Depends(get_current_user),
    user_db_handler: UserDBHandler = Depends(),
):
    """List users, newest first, with optional case-insensitive search."""
    users, total = await user_db_handler.search_users(
        search=search, skip=(page - 1) * limit, limit=limit
    )
    return success(
        users=[serialize_user(user) for user in users],
        totalUsers=total,
        pagination=build_pagination(page, limit, total),
    )


@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return success(user=serialize_user(current_user))


@router.put("/profile")
async def update_profile(
    update: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    user_db_handler: UserDBHandler = Depends(),
):
    user = await _apply_profile_update(current_user, update, user_db_handler)
    return success("Profile updated successfully", user=serialize_user(user))


@router.delete("/profile")
async def delete_profile(
    current_user: User = Depends(get_current_user),
    user_db_handler: UserDBHandler = Depends(),
):
    await user_db_handler.remove(current_user.id)
    logger.info(f"User {current_user.id} deleted their account")
    return success("User deleted successfully")


@router.put("/change-password")
@router.post("/change-password", include_in_schema=False)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    user_db_handler: UserDBHandler = Depends(),
):
    """Replace the caller's password after checking the current one."""
    if not verify_password(payload.current_password, current_user.hashed_password):
        logger.warning(f"Password change rejected for user {current_user.id}")
        raise AppError("Current password is incorrect", status_code=400)

    await user_db_handler.update(
        current_user, {"hashed_password": get_password_hash(payload.new_password)}
    )
    logger.info(f"Password changed for user {current_user.id}")
    return success("Password changed successfully")


@router.get("/{id}")
async def get_user(
    id: str,
    current_user: User = Depends(get_current_user),
    user_db_handler: UserDBHandler = Depends(),
):
    user = await user_db_handler.get(parse_identifier(id))
    if user is None:
        raise NotFoundError("User not found")
    return success(user=serialize_user(user))


@router.put("/{id}")
async def update_user(
    update: UserUpdateRequest,
    target: User = Depends(owned_user("update")),
    user_db_handler: UserDBHandler = Depends(),
):
    user = await _apply_profile_update(target, update, user_db_handler)
    return success("User updated successfully", user=serialize_user(user))


@router.delete("/{id}")
async def delete_user(
    target: User = Depends(owned_user("delete")),
    user_db_handler: UserDBHandler = Depends(),
):
    await user_db_handler.remove(target.id)
    logger.info(f"User {target.id} deleted")
    return success("User deleted successfully")
