"""
WorkZen - Onboarding Model

One OnboardingRequest per invited candidate. The token is the only
credential the candidate needs for the self-service steps.

State machine:
    invited -> pending_review -> approved | rejected | changes_requested
    changes_requested -> pending_review (candidate resubmits)
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from workzen.models.base import BaseModel


class OnboardingStatus(str, Enum):
    INVITED = "invited"
    PENDING_REVIEW = "pending_review"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"  # legacy value, treated like approved


TERMINAL_STATUSES = (OnboardingStatus.APPROVED, OnboardingStatus.REJECTED, OnboardingStatus.COMPLETED)


class DocumentType(str, Enum):
    PAN = "pan"
    AADHAAR = "aadhaar"
    RESUME = "resume"
    ADDRESS_PROOF = "address_proof"
    PHOTO = "photo"


class OnboardingRequest(BaseModel):
    """Candidate onboarding record."""
    
    __tablename__ = "onboarding_requests"
    
    # Invite details
    candidate_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    candidate_name: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    joining_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    status: Mapped[OnboardingStatus] = mapped_column(
        SQLEnum(OnboardingStatus, name="onboarding_status", values_callable=lambda x: [e.value for e in x]),
        default=OnboardingStatus.INVITED,
        nullable=False,
        index=True,
    )
    
    # Candidate data
    personal_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    pan: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, index=True)
    aadhaar: Mapped[Optional[str]] = mapped_column(String(14), nullable=True, index=True)
    bank_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    documents: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)
    step_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    # Review outcome
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    linked_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("employees.id", ondelete="SET NULL"), nullable=True,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejected_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fields_to_change: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    
    def __repr__(self) -> str:
        return f"<OnboardingRequest(id={self.id}, email={self.candidate_email}, status={self.status})>"
