"""
WorkZen - Employee Schemas

PII fields arrive in plain text and are encrypted by the service.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from workzen.models.employee import EmployeeStatus


class EmployeeCreateRequest(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    company_code: Optional[str] = Field(None, max_length=2)
    user_id: Optional[UUID] = None
    phone: Optional[str] = Field(None, max_length=20)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    joining_date: Optional[date] = None
    salary: Optional[Decimal] = Field(None, ge=0)
    pan: Optional[str] = None
    aadhaar: Optional[str] = None
    ifsc: Optional[str] = None
    bank_account_number: Optional[str] = None


class EmployeeUpdateRequest(BaseModel):
    """employee_id is accepted but never applied."""
    employee_id: Optional[str] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    joining_date: Optional[date] = None
    salary: Optional[Decimal] = Field(None, ge=0)
    status: Optional[EmployeeStatus] = None
    pan: Optional[str] = None
    aadhaar: Optional[str] = None
    ifsc: Optional[str] = None
    bank_account_number: Optional[str] = None


class GenerateIdRequest(BaseModel):
    company_code: Optional[str] = None
