"""
WorkZen - Audit Trail Service

Append-only logging of security-relevant actions (OTP issuance and
verification). A failed audit write is logged and never blocks the
operation being audited.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.models.audit import AuditLog, AuditAction

logger = logging.getLogger(__name__)


class AuditService:
    """Service for writing and reading the audit trail."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def log_action(
        self,
        action: AuditAction,
        actor_email: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Log an audit action.
        
        The entry is written inside a savepoint of the caller's session and
        committed with the caller's transaction. A failed write rolls back
        only the savepoint, so the caller's pending changes survive.

        Returns:
            Created AuditLog record, or None if it could not be written
        """
        # Caller's own pending changes; their errors are not audit errors
        await self.db.flush()

        try:
            audit_log = AuditLog(
                action=action,
                actor_email=actor_email,
                details=details,
                ip_address=ip_address,
            )
            async with self.db.begin_nested():
                self.db.add(audit_log)
            return audit_log
        except Exception as e:
            logger.error(f"Failed to write audit log {action.value} for {actor_email}: {e}")
            return None
    
    async def get_logs_for_actor(self, actor_email: str, limit: int = 50) -> List[AuditLog]:
        """Most recent audit entries for an email."""
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.actor_email == actor_email)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
