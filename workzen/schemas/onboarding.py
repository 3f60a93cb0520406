"""
WorkZen - Onboarding Schemas
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from workzen.models.onboarding import DocumentType


class OnboardingInviteRequest(BaseModel):
    candidate_email: EmailStr
    candidate_name: str = Field(..., min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    joining_date: Optional[date] = None


class PersonalInfoRequest(BaseModel):
    """
    Candidate personal details (step 1).

    Fields left out of the request keep their stored values.
    """
    full_name: Optional[str] = Field(None, max_length=255)
    dob: Optional[date] = None
    contact_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    pan_number: Optional[str] = Field(None, max_length=10)
    aadhaar_number: Optional[str] = Field(None, max_length=14)


class BankInfoRequest(BaseModel):
    account_holder_name: Optional[str] = Field(None, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=25)
    ifsc_code: Optional[str] = Field(None, max_length=11)
    bank_name: Optional[str] = Field(None, max_length=255)
    branch: Optional[str] = Field(None, max_length=255)


class OCRExtractRequest(BaseModel):
    document_type: DocumentType


class RequestChangesRequest(BaseModel):
    comments: str = Field(..., min_length=1)
    fields_to_change: List[str] = []


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class StepResponse(BaseModel):
    message: str
    step_completed: int
    documents: Optional[Dict[str, str]] = None


class ValidateTokenResponse(BaseModel):
    valid: bool = True
    onboarding: Dict[str, Any]


class ApprovalResponse(BaseModel):
    message: str
    employee_id: str
    email_sent: bool
