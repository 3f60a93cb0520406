"""
WorkZen - Onboarding Workflow Service

Token-based candidate onboarding:

    invite -> personal info -> bank info -> documents -> submit
           -> HR review -> approve | request changes | reject

The candidate authenticates every self-service step with the invite token
alone. Approval provisions a User and an Employee in a single transaction.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.config import settings
from workzen.models.base import as_utc, utcnow
from workzen.models.employee import Employee
from workzen.models.onboarding import (
    DocumentType,
    OnboardingRequest,
    OnboardingStatus,
)
from workzen.models.user import User, UserRole
from workzen.services.email_service import EmailService
from workzen.services.employee_service import EmployeeService
from workzen.services.file_storage_service import FileStorageService
from workzen.services.ocr_service import OCRService
from workzen.utils import field_encryption
from workzen.utils.error_handling import (
    ConflictException,
    DomainStateException,
    ErrorCode,
    NotFoundException,
    ValidationException,
)
from workzen.utils.field_encryption import mask_account_number
from workzen.utils.security import (
    generate_secure_token,
    generate_temporary_password,
    get_password_hash,
)
from workzen.utils.validators import (
    validate_aadhaar,
    validate_account_number,
    validate_ifsc,
    validate_pan,
    validate_phone,
    validate_pincode,
)

logger = logging.getLogger(__name__)

PERSONAL_INFO_FIELDS = ("full_name", "dob", "contact_number", "address", "city", "state", "pincode")

STEP_PERSONAL = 1
STEP_BANK = 2
STEP_DOCUMENTS = 3
STEP_SUBMITTED = 4


@dataclass
class ApprovalResult:
    employee_id: str
    user: User
    employee: Employee
    email_sent: bool


def split_full_name(full_name: str) -> Tuple[str, str]:
    """First token is the first name; the remainder (possibly empty) the last name."""
    parts = (full_name or "").split()
    if not parts:
        return full_name or "", ""
    return parts[0], " ".join(parts[1:])


def onboarding_link(token: str) -> str:
    # Token travels as a query parameter, never as a path segment
    return f"{settings.frontend_url}/onboard?token={token}"


def onboarding_to_dict(record: OnboardingRequest) -> Dict[str, Any]:
    """
    Serialize an onboarding record for display.

    The bank account number is decrypted and immediately masked.
    """
    bank_info = dict(record.bank_info) if record.bank_info else None
    if bank_info and bank_info.get("account_number"):
        try:
            plain = field_encryption.decrypt(bank_info["account_number"])
        except field_encryption.FieldDecryptionError:
            logger.warning(f"Could not decrypt bank account for onboarding {record.id}")
            plain = None
        bank_info["account_number"] = mask_account_number(plain)

    def _iso(value):
        return value.isoformat() if value else None

    return {
        "id": str(record.id),
        "candidate_email": record.candidate_email,
        "candidate_name": record.candidate_name,
        "department": record.department,
        "position": record.position,
        "joining_date": _iso(record.joining_date),
        "status": record.status.value,
        "personal_info": record.personal_info,
        "pan": record.pan,
        "aadhaar": record.aadhaar,
        "bank_info": bank_info,
        "documents": record.documents,
        "step_completed": record.step_completed,
        "submitted_at": _iso(record.submitted_at),
        "approved_by": str(record.approved_by) if record.approved_by else None,
        "approved_at": _iso(record.approved_at),
        "linked_employee_id": str(record.linked_employee_id) if record.linked_employee_id else None,
        "rejection_reason": record.rejection_reason,
        "rejected_at": _iso(record.rejected_at),
        "review_comments": record.review_comments,
        "fields_to_change": record.fields_to_change,
        "created_at": _iso(record.created_at),
    }


class OnboardingService:
    """Service for the candidate onboarding workflow."""

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        storage: Optional[FileStorageService] = None,
        ocr_service: Optional[OCRService] = None,
        employee_service: Optional[EmployeeService] = None,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.storage = storage or FileStorageService()
        self.ocr_service = ocr_service or OCRService()
        self.employee_service = employee_service or EmployeeService(db)

    # ===========================================
    # LOOKUPS
    # ===========================================

    async def get_by_token(self, token: str) -> OnboardingRequest:
        result = await self.db.execute(
            select(OnboardingRequest).where(OnboardingRequest.token == token)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundException("Onboarding", message="Invalid or expired token")
        return record

    async def get_by_id(self, onboarding_id: uuid.UUID) -> OnboardingRequest:
        result = await self.db.execute(
            select(OnboardingRequest).where(OnboardingRequest.id == onboarding_id)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundException("Onboarding", message="Onboarding request not found")
        return record

    @staticmethod
    def _ensure_editable(record: OnboardingRequest) -> None:
        """Candidate self-service is closed once a record reaches a terminal state."""
        if record.status in (OnboardingStatus.APPROVED, OnboardingStatus.COMPLETED):
            raise DomainStateException("Onboarding already completed", code=ErrorCode.ALREADY_COMPLETED)
        if record.status == OnboardingStatus.REJECTED:
            raise DomainStateException("Onboarding has been rejected", code=ErrorCode.ALREADY_PROCESSED)

    async def _find_duplicate(self, column, value: str, exclude_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(OnboardingRequest.id)
            .where(and_(column == value, OnboardingRequest.id != exclude_id))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    # ===========================================
    # HR: INVITE
    # ===========================================

    async def invite(
        self,
        candidate_email: str,
        candidate_name: str,
        created_by: User,
        department: Optional[str] = None,
        position: Optional[str] = None,
        joining_date: Optional[date] = None,
    ) -> Tuple[OnboardingRequest, bool]:
        """
        Create an onboarding record and email the candidate their link.

        Returns:
            (record, email_sent)
        """
        record = OnboardingRequest(
            candidate_email=candidate_email.strip().lower(),
            candidate_name=candidate_name.strip(),
            department=department,
            position=position,
            joining_date=joining_date,
            token=generate_secure_token(32),
            status=OnboardingStatus.INVITED,
            step_completed=0,
            created_by=created_by.id,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        email_sent = await self.email_service.send_onboarding_invite(
            record.candidate_email,
            record.candidate_name,
            onboarding_link(record.token),
            position=position,
            department=department,
        )
        if not email_sent:
            logger.warning(f"Onboarding invite email to {record.candidate_email} was not delivered")

        logger.info(f"Onboarding invite created for {record.candidate_email} by {created_by.email}")
        return record, email_sent

    # ===========================================
    # CANDIDATE: SELF-SERVICE STEPS
    # ===========================================

    async def validate_token(self, token: str, now: Optional[datetime] = None) -> OnboardingRequest:
        """
        Raises:
            NotFoundException: Unknown token
            DomainStateException: Token older than the TTL, or onboarding finished
        """
        record = await self.get_by_token(token)

        now = now or utcnow()
        expires_at = as_utc(record.created_at) + timedelta(days=settings.onboarding_token_ttl_days)
        if now > expires_at:
            raise DomainStateException("Token has expired", code=ErrorCode.TOKEN_EXPIRED)

        if record.status in (OnboardingStatus.COMPLETED, OnboardingStatus.APPROVED):
            raise DomainStateException("Onboarding already completed", code=ErrorCode.ALREADY_COMPLETED)

        return record

    async def save_personal_info(self, token: str, data: Dict[str, Any]) -> OnboardingRequest:
        record = await self.get_by_token(token)
        self._ensure_editable(record)

        pan = data.get("pan_number")
        aadhaar = data.get("aadhaar_number")
        if aadhaar:
            aadhaar = aadhaar.replace(" ", "")

        if pan and not validate_pan(pan):
            raise ValidationException("Invalid PAN format", field="pan_number")
        if aadhaar and not validate_aadhaar(aadhaar):
            raise ValidationException("Invalid Aadhaar number", field="aadhaar_number")
        if data.get("contact_number") and not validate_phone(data["contact_number"]):
            raise ValidationException("Invalid contact number", field="contact_number")
        if data.get("pincode") and not validate_pincode(data["pincode"]):
            raise ValidationException("Invalid pincode", field="pincode")

        if pan and await self._find_duplicate(OnboardingRequest.pan, pan, record.id):
            raise ConflictException(
                "PAN number already exists",
                code=ErrorCode.DUPLICATE_PAN,
                status_code=400,
            )
        if aadhaar and await self._find_duplicate(OnboardingRequest.aadhaar, aadhaar, record.id):
            raise ConflictException(
                "Aadhaar number already exists",
                code=ErrorCode.DUPLICATE_AADHAAR,
                status_code=400,
            )

        personal_info = dict(record.personal_info or {})
        for field in PERSONAL_INFO_FIELDS:
            if field in data:
                value = data[field]
                personal_info[field] = value.isoformat() if isinstance(value, date) else value
        record.personal_info = personal_info

        if pan:
            record.pan = pan
        if aadhaar:
            record.aadhaar = aadhaar
        record.step_completed = max(record.step_completed or 0, STEP_PERSONAL)

        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Personal info saved for onboarding {record.id}")
        return record

    async def save_bank_info(self, token: str, data: Dict[str, Any]) -> OnboardingRequest:
        record = await self.get_by_token(token)
        self._ensure_editable(record)

        account_number = (data.get("account_number") or "").replace(" ", "")
        ifsc_code = data.get("ifsc_code")

        if not account_number or not validate_account_number(account_number):
            raise ValidationException("Invalid bank account number", field="account_number")
        if ifsc_code and not validate_ifsc(ifsc_code):
            raise ValidationException("Invalid IFSC code", field="ifsc_code")

        bank_info = {k: v for k, v in data.items() if v is not None}
        bank_info["account_number"] = field_encryption.encrypt(account_number)
        bank_info["ifsc_code"] = ifsc_code
        record.bank_info = bank_info
        record.step_completed = max(record.step_completed or 0, STEP_BANK)

        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Bank info saved for onboarding {record.id}")
        return record

    async def upload_documents(
        self,
        token: str,
        files: Dict[str, Tuple[str, bytes]],
    ) -> OnboardingRequest:
        """
        Store uploaded files.

        Args:
            files: document key -> (original filename, content)
        """
        record = await self.get_by_token(token)
        self._ensure_editable(record)

        if not files:
            raise ValidationException("No documents uploaded", field="files")

        valid_keys = {d.value for d in DocumentType}
        unknown = [key for key in files if key not in valid_keys]
        if unknown:
            raise ValidationException(
                f"Unknown document type(s): {', '.join(unknown)}",
                field="files",
            )

        # All files are checked before any is written
        for filename, content in files.values():
            self.storage.validate(filename, content)

        documents = dict(record.documents or {})
        for doc_key, (filename, content) in files.items():
            documents[doc_key] = await self.storage.save_onboarding_document(
                record.id, doc_key, filename, content
            )
        record.documents = documents
        record.step_completed = max(record.step_completed or 0, STEP_DOCUMENTS)

        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Documents uploaded for onboarding {record.id}: {', '.join(files)}")
        return record

    async def submit(self, token: str) -> OnboardingRequest:
        record = await self.get_by_token(token)
        self._ensure_editable(record)

        if not record.personal_info or not record.bank_info:
            raise DomainStateException("Please complete all steps", code=ErrorCode.INCOMPLETE_STEPS)
        if not record.pan or not record.aadhaar:
            raise DomainStateException(
                "Please provide PAN and Aadhaar details",
                code=ErrorCode.INCOMPLETE_STEPS,
            )

        record.status = OnboardingStatus.PENDING_REVIEW
        record.step_completed = STEP_SUBMITTED
        record.submitted_at = utcnow()

        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Onboarding {record.id} submitted for review")
        return record

    async def get_details(self, token: str) -> Dict[str, Any]:
        record = await self.get_by_token(token)
        return onboarding_to_dict(record)

    # ===========================================
    # HR: REVIEW
    # ===========================================

    async def extract_document(self, onboarding_id: uuid.UUID, document_type: str) -> Dict[str, Any]:
        """Advisory OCR over an uploaded document; nothing is written back."""
        result = await self.db.execute(
            select(OnboardingRequest).where(OnboardingRequest.id == onboarding_id)
        )
        record = result.scalar_one_or_none()
        stored = (record.documents or {}).get(document_type) if record else None
        if not stored:
            raise NotFoundException("Document", message="Document not found")

        path = self.storage.resolve(stored)
        return await self.ocr_service.parse_document(path, document_type)

    async def get_pending_reviews(self) -> List[OnboardingRequest]:
        result = await self.db.execute(
            select(OnboardingRequest)
            .where(OnboardingRequest.status == OnboardingStatus.PENDING_REVIEW)
            .order_by(OnboardingRequest.submitted_at.desc())
        )
        return list(result.scalars().all())

    async def approve(self, onboarding_id: uuid.UUID, approver: User) -> ApprovalResult:
        """
        Provision a User and an Employee for the candidate.

        The user insert, employee insert and status update commit together
        or not at all. The welcome email is sent after the commit.
        """
        record = await self.get_by_id(onboarding_id)

        if record.status in (OnboardingStatus.APPROVED, OnboardingStatus.COMPLETED):
            raise DomainStateException("Onboarding already approved", code=ErrorCode.ALREADY_PROCESSED)
        if record.status == OnboardingStatus.REJECTED:
            raise DomainStateException("Onboarding has been rejected", code=ErrorCode.ALREADY_PROCESSED)

        email = record.candidate_email.strip().lower()
        existing = await self.db.execute(
            select(User.id).where(func.lower(User.email) == email).limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictException(
                "User account already exists for this email. Please contact admin.",
                code=ErrorCode.DUPLICATE_ENTRY,
                status_code=400,
            )

        personal_info = record.personal_info or {}
        bank_info = record.bank_info or {}
        full_name = personal_info.get("full_name") or record.candidate_name
        first_name, last_name = split_full_name(full_name)
        temporary_password = generate_temporary_password()

        try:
            user = User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(temporary_password),
                role=UserRole.EMPLOYEE,
                is_active=True,
                email_verified=True,
            )
            self.db.add(user)
            await self.db.flush()

            employee = await self.employee_service.add_employee(
                first_name=first_name,
                last_name=last_name,
                email=email,
                user_id=user.id,
                phone=personal_info.get("contact_number"),
                department=record.department,
                position=record.position,
                joining_date=record.joining_date,
                pan=record.pan,
                aadhaar=record.aadhaar,
                ifsc=bank_info.get("ifsc_code"),
                bank_account_number=field_encryption.decrypt(bank_info.get("account_number")),
            )

            record.status = OnboardingStatus.APPROVED
            record.approved_by = approver.id
            record.approved_at = utcnow()
            record.linked_employee_id = employee.id

            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Approval of onboarding {onboarding_id} rolled back: {e}")
            raise

        await self.db.refresh(user)
        await self.db.refresh(employee)

        email_sent = await self.email_service.send_welcome_email(
            email, first_name, employee.employee_id, temporary_password
        )
        if not email_sent:
            logger.warning(f"Welcome email to {email} was not delivered")

        logger.info(
            f"Onboarding {onboarding_id} approved by {approver.email}: employee {employee.employee_id}"
        )
        return ApprovalResult(
            employee_id=employee.employee_id,
            user=user,
            employee=employee,
            email_sent=email_sent,
        )

    async def request_changes(
        self,
        onboarding_id: uuid.UUID,
        reviewer: User,
        comments: str,
        fields_to_change: Optional[List[str]] = None,
    ) -> Tuple[OnboardingRequest, bool]:
        record = await self.get_by_id(onboarding_id)
        self._ensure_editable(record)

        record.status = OnboardingStatus.CHANGES_REQUESTED
        record.review_comments = comments
        record.fields_to_change = list(fields_to_change or [])

        await self.db.commit()
        await self.db.refresh(record)

        email_sent = await self.email_service.send_changes_requested_email(
            record.candidate_email,
            record.candidate_name,
            onboarding_link(record.token),
            comments,
            record.fields_to_change,
        )
        logger.info(f"Changes requested on onboarding {record.id} by {reviewer.email}")
        return record, email_sent

    async def reject(
        self,
        onboarding_id: uuid.UUID,
        reviewer: User,
        reason: str,
    ) -> Tuple[OnboardingRequest, bool]:
        record = await self.get_by_id(onboarding_id)
        self._ensure_editable(record)

        record.status = OnboardingStatus.REJECTED
        record.rejection_reason = reason
        record.rejected_by = reviewer.id
        record.rejected_at = utcnow()

        await self.db.commit()
        await self.db.refresh(record)

        email_sent = await self.email_service.send_rejection_email(
            record.candidate_email, record.candidate_name, reason
        )
        logger.info(f"Onboarding {record.id} rejected by {reviewer.email}")
        return record, email_sent
