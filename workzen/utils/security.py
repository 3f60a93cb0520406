"""
WorkZen - Security Utilities

Password hashing, JWT token management, and random token helpers.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from workzen.config import settings


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Suffix appended to generated passwords so they always satisfy complexity rules
TEMP_PASSWORD_SUFFIX = "A1@"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def generate_temporary_password(length: int = 10) -> str:
    """
    Generate a temporary password for a newly provisioned account.
    
    Args:
        length: Number of random alphanumeric characters before the suffix
    
    Returns:
        Random alphanumerics followed by a fixed upper/digit/special suffix
    """
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length)) + TEMP_PASSWORD_SUFFIX


def generate_secure_token(nbytes: int = 32) -> str:
    """Random hex token (32 bytes = 256 bits of entropy by default)."""
    return secrets.token_hex(nbytes)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.
    
    Args:
        data: Dictionary containing token payload
        expires_delta: Optional custom expiration time
    
    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_expire_minutes
        )
    
    to_encode.update({"exp": expire, "type": "access"})
    
    encoded_jwt = jwt.encode(
        to_encode,
        settings.jwt_signing_key,
        algorithm=settings.jwt_algorithm
    )
    
    return encoded_jwt


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token.
    
    Returns:
        Token payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_signing_key,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict]:
    """Verify an access token and return payload, or None if invalid."""
    payload = decode_token(token)
    if payload and payload.get("type") == "access":
        return payload
    return None


def create_user_token(user) -> str:
    """Session token carrying the user's id, email and role."""
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return create_access_token({
        "sub": str(user.id),
        "id": str(user.id),
        "email": user.email,
        "role": role,
    })
