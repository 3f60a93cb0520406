"""
WorkZen - Audit Log Model

Append-only record of security-relevant actions.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, String, Uuid, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from workzen.database import Base
from workzen.models.base import utcnow


class AuditAction(str, Enum):
    """Audited actions."""
    OTP_SENT = "OTP_SENT"
    OTP_RESENT = "OTP_RESENT"
    OTP_VERIFIED = "OTP_VERIFIED"
    OTP_VERIFY_FAILED = "OTP_VERIFY_FAILED"


class AuditLog(Base):
    """
    Immutable audit log entry.
    
    This table should have no UPDATE or DELETE permissions.
    """
    
    __tablename__ = "audit_logs"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    actor_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    action: Mapped[AuditAction] = mapped_column(
        SQLEnum(AuditAction, name="audit_action", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    
    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, actor={self.actor_email})>"
