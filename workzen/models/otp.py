"""
WorkZen - Email OTP Model

Ephemeral one-time codes used to verify an email during self-registration.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from workzen.models.base import BaseModel


class EmailOtp(BaseModel):
    """Hashed OTP with expiry and attempt counter."""
    
    __tablename__ = "email_otps"
    
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    otp_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # Only populated outside production, for debugging
    otp_plain: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
