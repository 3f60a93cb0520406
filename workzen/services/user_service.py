"""
WorkZen - User Management Service

HR-side user administration. Who may touch whom is decided by the policy
table in workzen.utils.permissions.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.models.user import Role, User, UserRole
from workzen.services.auth_service import validate_password_strength
from workzen.utils.error_handling import (
    AuthorizationException,
    DomainStateException,
    DuplicateEntryException,
    ErrorCode,
    MissingFieldsException,
    NotFoundException,
    ValidationException,
)
from workzen.utils.permissions import can_manage_role
from workzen.utils.security import get_password_hash

logger = logging.getLogger(__name__)

VALID_ROLES = [r.value for r in UserRole]


def parse_role(value: Any) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationException(
            f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}",
            field="role",
        )


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role.value,
        "is_active": user.is_active,
        "email_verified": user.email_verified,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


class UserService:
    """Service for user administration."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: uuid.UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundException("User", message="User not found")
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], Dict[str, int]]:
        conditions = []
        if role:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active.is_(is_active))
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(User.email.ilike(pattern), User.full_name.ilike(pattern)))

        count_query = select(func.count(User.id))
        data_query = select(User)
        if conditions:
            count_query = count_query.where(and_(*conditions))
            data_query = data_query.where(and_(*conditions))

        total = (await self.db.execute(count_query)).scalar_one()
        result = await self.db.execute(
            data_query.order_by(User.created_at.desc()).limit(limit).offset((page - 1) * limit)
        )
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
        return list(result.scalars().all()), pagination

    async def get_stats(self) -> Dict[str, Any]:
        total = (await self.db.execute(select(func.count(User.id)))).scalar_one()
        active = (
            await self.db.execute(select(func.count(User.id)).where(User.is_active.is_(True)))
        ).scalar_one()
        by_role = await self.db.execute(
            select(User.role, func.count(User.id)).group_by(User.role)
        )
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "by_role": [{"role": role.value, "count": count} for role, count in by_role.all()],
        }

    async def get_roles(self) -> List[Role]:
        result = await self.db.execute(select(Role).order_by(Role.name))
        return list(result.scalars().all())

    async def _count_active_admins(self) -> int:
        result = await self.db.execute(
            select(func.count(User.id)).where(
                and_(User.role == UserRole.ADMIN, User.is_active.is_(True))
            )
        )
        return result.scalar_one()

    async def _is_last_active_admin(self, user: User) -> bool:
        if user.role != UserRole.ADMIN or not user.is_active:
            return False
        return await self._count_active_admins() <= 1

    async def create_user(
        self,
        actor: User,
        email: Optional[str],
        password: Optional[str],
        full_name: Optional[str],
        role: Any = UserRole.EMPLOYEE,
    ) -> User:
        missing = [
            name for name, value in (("email", email), ("password", password), ("full_name", full_name))
            if not value
        ]
        if missing:
            raise MissingFieldsException(missing)

        target_role = parse_role(role or UserRole.EMPLOYEE)
        if not can_manage_role(actor.role, target_role):
            raise AuthorizationException(
                "HR officers cannot create admin users"
                if actor.role == UserRole.HR_OFFICER
                else "Unauthorized to create users",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            )

        validate_password_strength(password)

        email = email.strip().lower()
        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateEntryException("User with this email already exists")

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name.strip(),
            role=target_role,
            is_active=True,
            email_verified=True,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"User created: {user.email} ({target_role.value}) by {actor.email}")
        return user

    async def update_user(self, actor: User, user_id: uuid.UUID, data: Dict[str, Any]) -> User:
        """
        Update full_name, role and is_active.

        Raises:
            AuthorizationException: Self-modification, or a target/role outside the actor's reach
            DomainStateException: Would leave no active admin
        """
        target = await self.get_user(user_id)

        if target.id == actor.id:
            raise AuthorizationException(
                "Cannot modify your own account. Ask another admin or HR officer.",
                code=ErrorCode.CANNOT_MODIFY,
            )

        if not can_manage_role(actor.role, target.role):
            raise AuthorizationException(
                "HR officers cannot modify admin users",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            )

        new_role = parse_role(data["role"]) if data.get("role") else None
        if new_role and not can_manage_role(actor.role, new_role):
            raise AuthorizationException(
                "HR officers cannot create or promote users to admin role",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            )

        deactivating = data.get("is_active") is False
        demoting = new_role is not None and new_role != UserRole.ADMIN
        if (deactivating or demoting) and await self._is_last_active_admin(target):
            raise DomainStateException(
                "Cannot remove the last admin user",
                code=ErrorCode.CANNOT_MODIFY,
            )

        if data.get("full_name"):
            target.full_name = data["full_name"].strip()
        if new_role:
            target.role = new_role
        if data.get("is_active") is not None:
            target.is_active = bool(data["is_active"])

        await self.db.commit()
        await self.db.refresh(target)

        logger.info(f"User updated: {target.email} by {actor.email}")
        return target

    async def delete_user(self, actor: User, user_id: uuid.UUID) -> User:
        """Soft delete (is_active = False)."""
        target = await self.get_user(user_id)

        if not can_manage_role(actor.role, target.role):
            raise AuthorizationException(
                "HR officers cannot modify admin users",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            )

        if await self._is_last_active_admin(target):
            raise DomainStateException(
                "Cannot delete the last admin user",
                code=ErrorCode.CANNOT_DELETE,
            )

        target.is_active = False
        await self.db.commit()
        await self.db.refresh(target)

        logger.info(f"User deactivated: {target.email} by {actor.email}")
        return target

    async def reset_user_password(self, actor: User, user_id: uuid.UUID, new_password: Optional[str]) -> User:
        if not new_password:
            raise ValidationException("New password is required", field="new_password")

        target = await self.get_user(user_id)
        if not can_manage_role(actor.role, target.role):
            raise AuthorizationException(
                "HR officers cannot reset admin passwords",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            )

        validate_password_strength(new_password)
        target.hashed_password = get_password_hash(new_password)
        await self.db.commit()
        await self.db.refresh(target)

        logger.info(f"Password reset for {target.email} by {actor.email}")
        return target
