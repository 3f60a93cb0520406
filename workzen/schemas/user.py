"""
WorkZen - User Management Schemas
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserCreateRequest(BaseModel):
    """Presence and role are checked by the service so errors name every missing field."""
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None


class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class UserPasswordResetRequest(BaseModel):
    new_password: Optional[str] = None


class RoleResponse(BaseModel):
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
