from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi_users import exceptions

from auth.auth import get_current_active_user, require_admin
from auth.models import User
from auth.schemas import UserUpdate
from auth.user_manager import UserManager, get_user_manager
from settings.errors import DomainValidationError, DuplicateError, NotFoundError
from users.user_model import PasswordChange, ProfileUpdate, StatusUpdate, UserProfile, UserSummary
from schemas.api import Message


router = APIRouter(prefix="/users", tags=["users"])


def to_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role.value,
        avatar=user.avatar,
        is_active=user.is_active,
    )


def to_profile(user: User) -> UserProfile:
    return UserProfile.model_validate(user.model_dump(mode="json"))


@router.get("/profile", response_model=UserProfile)
async def get_profile(user: User = Depends(get_current_active_user)) -> UserProfile:
    return to_profile(user)


@router.put("/profile", response_model=UserProfile)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_active_user),
    manager: UserManager = Depends(get_user_manager),
) -> UserProfile:
    patch = body.model_dump(exclude_none=True)
    try:
        updated = await manager.update(UserUpdate(**patch), user, safe=True)
    except exceptions.UserAlreadyExists as exc:
        raise DuplicateError("Email already in use") from exc
    return to_profile(updated)


@router.put("/password", response_model=Message)
async def change_password(
    body: PasswordChange,
    user: User = Depends(get_current_active_user),
    manager: UserManager = Depends(get_user_manager),
) -> Message:
    verified, _ = manager.password_helper.verify_and_update(body.current_password, user.hashed_password)
    if not verified:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    try:
        await manager.update(UserUpdate(password=body.new_password), user, safe=True)
    except exceptions.InvalidPasswordException as exc:
        raise DomainValidationError(str(exc.reason)) from exc
    return Message(message="Password updated successfully")


@router.get("/all", response_model=List[UserSummary])
async def list_users(
    _: User = Depends(require_admin),
    manager: UserManager = Depends(get_user_manager),
) -> List[UserSummary]:
    return [to_summary(u) for u in await manager.user_db.list_all()]


@router.put("/{user_id}/status", response_model=UserSummary)
async def update_status(
    user_id: str,
    body: StatusUpdate,
    _: User = Depends(require_admin),
    manager: UserManager = Depends(get_user_manager),
) -> UserSummary:
    target = await manager.user_db.get(user_id)
    if target is None:
        raise NotFoundError("User not found")
    if body.is_active is not None:
        target = await manager.user_db.update(target, {"is_active": body.is_active})
    return to_summary(target)
