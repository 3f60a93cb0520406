"""
WorkZen - User Management Router

Endpoints (admin and HR officer, unless noted):
- GET /users - Paginated list with role/status/search filters
- GET /users/stats - Totals by role and active flag
- GET /users/roles - Role lookup table
- GET /users/{user_id} - Single user (also allowed for the user themselves)
- POST /users - Create a user
- PUT /users/{user_id} - Update name, role or active flag
- DELETE /users/{user_id} - Deactivate
- POST /users/{user_id}/reset-password - Set a new password for a user
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.database import get_async_session
from workzen.dependencies import get_current_active_user, require_role
from workzen.models.user import User, UserRole
from workzen.schemas.auth import MessageResponse, UserResponse
from workzen.schemas.user import (
    RoleResponse,
    UserCreateRequest,
    UserPasswordResetRequest,
    UserUpdateRequest,
)
from workzen.services.user_service import UserService
from workzen.utils.permissions import HR_ROLES


router = APIRouter(prefix="/users", tags=["User Management"])


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    users, pagination = await UserService(db).list_users(
        page=page, limit=limit, role=role, is_active=is_active, search=search
    )
    return {
        "data": [UserResponse.model_validate(u) for u in users],
        "pagination": pagination,
    }


@router.get("/stats")
async def get_user_stats(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    return await UserService(db).get_stats()


@router.get("/roles", response_model=List[RoleResponse])
async def get_roles(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    return await UserService(db).get_roles()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    if current_user.id != user_id and current_user.role not in HR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to view this user",
        )
    return await UserService(db).get_user(user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    user = await UserService(db).create_user(
        current_user,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        role=payload.role,
    )
    return {"message": "User created successfully", "user": UserResponse.model_validate(user)}


@router.put("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdateRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    user = await UserService(db).update_user(
        current_user, user_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "User updated successfully", "user": UserResponse.model_validate(user)}


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    await UserService(db).delete_user(current_user, user_id)
    return MessageResponse(message="User deactivated successfully")


@router.post("/{user_id}/reset-password", response_model=MessageResponse)
async def reset_user_password(
    user_id: uuid.UUID,
    payload: UserPasswordResetRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    await UserService(db).reset_user_password(current_user, user_id, payload.new_password)
    return MessageResponse(message="User password reset successfully")
