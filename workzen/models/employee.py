"""
WorkZen - Employee Model

HR record, distinct from the User login identity.

PAN, Aadhaar, IFSC and bank account number are stored encrypted
(see workzen.utils.field_encryption).
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from workzen.database import Base
from workzen.models.base import BaseModel


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Employee(BaseModel):
    """Employee record with allocated business identifier."""
    
    __tablename__ = "employees"
    
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    
    # Allocated identifier, e.g. OI20250007 (immutable)
    employee_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )
    
    # Personal Information
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    
    # Employment
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    joining_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    salary: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    
    # Encrypted PII
    pan: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    aadhaar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ifsc: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bank_account_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    status: Mapped[EmployeeStatus] = mapped_column(
        SQLEnum(EmployeeStatus, name="employee_status", values_callable=lambda x: [e.value for e in x]),
        default=EmployeeStatus.ACTIVE,
        nullable=False,
    )
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
    
    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, employee_id={self.employee_id})>"


class EmployeeIdSequence(Base):
    """
    Per-company, per-year counter table.
    
    Present in the schema for a persisted-sequence allocator; the current
    allocator derives serials from a live count and does not read it.
    """
    
    __tablename__ = "employee_id_sequences"
    
    company_code: Mapped[str] = mapped_column(String(2), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
