"""
WorkZen - Permissions System

Role gates for HR-side endpoints and the user-management policy table.

User-management policy (actor role -> target roles it may create, modify
or assign):
| Actor       | admin | hr_officer | manager | employee | contractor |
|-------------|-------|------------|---------|----------|------------|
| admin       | X     | X          | X       | X        | X          |
| hr_officer  |       | X          | X       | X        | X          |
"""

from typing import FrozenSet

from workzen.models.user import UserRole


# Roles an actor may create, modify, or grant
MANAGEABLE_ROLES: dict[UserRole, FrozenSet[UserRole]] = {
    UserRole.ADMIN: frozenset(UserRole),
    UserRole.HR_OFFICER: frozenset(UserRole) - {UserRole.ADMIN},
    UserRole.MANAGER: frozenset(),
    UserRole.EMPLOYEE: frozenset(),
    UserRole.CONTRACTOR: frozenset(),
}


# Roles allowed through require_role() for HR-side operations
HR_ROLES = [UserRole.ADMIN, UserRole.HR_OFFICER]


def can_manage_role(actor_role: UserRole, target_role: UserRole) -> bool:
    """Whether actor_role may create/modify a user holding, or being given, target_role."""
    return target_role in MANAGEABLE_ROLES.get(actor_role, frozenset())
