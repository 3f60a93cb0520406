"""
WorkZen - Onboarding Router

Candidate endpoints authenticate with the invite token only; HR endpoints
require an admin or HR officer session.

Candidate:
- GET /onboarding/validate/{token}
- PUT /onboarding/personal/{token}
- PUT /onboarding/bank/{token}
- POST /onboarding/upload/{token}
- POST /onboarding/submit/{token}
- GET /onboarding/details/{token}

HR:
- POST /onboarding/invite
- POST /onboarding/ocr/extract/{doc_id}
- GET /onboarding/reviews/pending
- PUT /onboarding/approve/{onboarding_id}
- PUT /onboarding/request-changes/{onboarding_id}
- PUT /onboarding/reject/{onboarding_id}
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.database import get_async_session
from workzen.dependencies import require_role
from workzen.models.user import User
from workzen.schemas.onboarding import (
    ApprovalResponse,
    BankInfoRequest,
    OCRExtractRequest,
    OnboardingInviteRequest,
    PersonalInfoRequest,
    RejectRequest,
    RequestChangesRequest,
    StepResponse,
    ValidateTokenResponse,
)
from workzen.services.onboarding_service import OnboardingService, onboarding_to_dict
from workzen.utils.permissions import HR_ROLES


router = APIRouter(prefix="/onboarding", tags=["Onboarding"])


# ===========================================
# HR: INVITE
# ===========================================

@router.post("/invite", status_code=status.HTTP_201_CREATED)
async def invite_candidate(
    payload: OnboardingInviteRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    service = OnboardingService(db)
    record, email_sent = await service.invite(
        candidate_email=payload.candidate_email,
        candidate_name=payload.candidate_name,
        created_by=current_user,
        department=payload.department,
        position=payload.position,
        joining_date=payload.joining_date,
    )
    note = (
        f"Email sent to {record.candidate_email}"
        if email_sent
        else f"Email could not be sent to {record.candidate_email}"
    )
    return {
        "message": "Onboarding invite created successfully",
        "onboarding": onboarding_to_dict(record),
        "note": note,
    }


# ===========================================
# CANDIDATE: SELF-SERVICE
# ===========================================

@router.get("/validate/{token}", response_model=ValidateTokenResponse)
async def validate_token(token: str, db: AsyncSession = Depends(get_async_session)):
    record = await OnboardingService(db).validate_token(token)
    return ValidateTokenResponse(
        onboarding={
            "candidate_name": record.candidate_name,
            "department": record.department,
            "position": record.position,
            "status": record.status.value,
        }
    )


@router.put("/personal/{token}", response_model=StepResponse)
async def save_personal_info(
    token: str,
    payload: PersonalInfoRequest,
    db: AsyncSession = Depends(get_async_session),
):
    record = await OnboardingService(db).save_personal_info(
        token, payload.model_dump(exclude_unset=True)
    )
    return StepResponse(
        message="Personal information saved successfully",
        step_completed=record.step_completed,
    )


@router.put("/bank/{token}", response_model=StepResponse)
async def save_bank_info(
    token: str,
    payload: BankInfoRequest,
    db: AsyncSession = Depends(get_async_session),
):
    record = await OnboardingService(db).save_bank_info(token, payload.model_dump())
    return StepResponse(
        message="Bank information saved successfully",
        step_completed=record.step_completed,
    )


@router.post("/upload/{token}", response_model=StepResponse)
async def upload_documents(
    token: str,
    pan: Optional[UploadFile] = File(None),
    aadhaar: Optional[UploadFile] = File(None),
    resume: Optional[UploadFile] = File(None),
    address_proof: Optional[UploadFile] = File(None),
    photo: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_async_session),
):
    uploads = {
        "pan": pan,
        "aadhaar": aadhaar,
        "resume": resume,
        "address_proof": address_proof,
        "photo": photo,
    }
    files = {}
    for key, upload in uploads.items():
        if upload is not None and upload.filename:
            files[key] = (upload.filename, await upload.read())

    record = await OnboardingService(db).upload_documents(token, files)
    return StepResponse(
        message="Documents uploaded successfully",
        step_completed=record.step_completed,
        documents=record.documents,
    )


@router.post("/submit/{token}")
async def submit_onboarding(token: str, db: AsyncSession = Depends(get_async_session)):
    record = await OnboardingService(db).submit(token)
    return {"message": "Onboarding submitted successfully", "status": record.status.value}


@router.get("/details/{token}")
async def get_onboarding_details(token: str, db: AsyncSession = Depends(get_async_session)):
    return {"onboarding": await OnboardingService(db).get_details(token)}


# ===========================================
# HR: REVIEW
# ===========================================

@router.post("/ocr/extract/{doc_id}")
async def extract_document(
    doc_id: uuid.UUID,
    payload: OCRExtractRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    """Advisory OCR over an uploaded document of onboarding `doc_id`."""
    data = await OnboardingService(db).extract_document(doc_id, payload.document_type.value)
    return {"message": "OCR extraction successful", "data": data}


@router.get("/reviews/pending")
async def get_pending_reviews(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    records = await OnboardingService(db).get_pending_reviews()
    return {"count": len(records), "onboardings": [onboarding_to_dict(r) for r in records]}


@router.put("/approve/{onboarding_id}", response_model=ApprovalResponse)
async def approve_onboarding(
    onboarding_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    result = await OnboardingService(db).approve(onboarding_id, current_user)
    return ApprovalResponse(
        message="Onboarding approved successfully",
        employee_id=result.employee_id,
        email_sent=result.email_sent,
    )


@router.put("/request-changes/{onboarding_id}")
async def request_changes(
    onboarding_id: uuid.UUID,
    payload: RequestChangesRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    _, email_sent = await OnboardingService(db).request_changes(
        onboarding_id,
        current_user,
        payload.comments,
        payload.fields_to_change,
    )
    return {"message": "Change request sent successfully", "email_sent": email_sent}


@router.put("/reject/{onboarding_id}")
async def reject_onboarding(
    onboarding_id: uuid.UUID,
    payload: RejectRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    _, email_sent = await OnboardingService(db).reject(onboarding_id, current_user, payload.reason)
    return {"message": "Onboarding rejected", "email_sent": email_sent}
