"""
WorkZen - Employee Service

Employee records management.

PAN, Aadhaar, IFSC and bank account number are encrypted on every write
and only leave this service masked.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.models.employee import Employee, EmployeeStatus
from workzen.services.employee_id_service import EmployeeIdService, is_valid_employee_id
from workzen.utils import field_encryption
from workzen.utils.error_handling import (
    DuplicateEntryException,
    MissingFieldsException,
    NotFoundException,
    ValidationException,
)
from workzen.utils.field_encryption import (
    FieldDecryptionError,
    mask_aadhaar,
    mask_account_number,
    mask_pan,
)
from workzen.utils.validators import (
    validate_aadhaar,
    validate_account_number,
    validate_ifsc,
    validate_pan,
    validate_phone,
)

logger = logging.getLogger(__name__)

ENCRYPTED_FIELDS = ("pan", "aadhaar", "ifsc", "bank_account_number")
REQUIRED_FIELDS = ("first_name", "last_name", "email")
UPDATABLE_FIELDS = (
    "first_name", "last_name", "email", "phone", "department", "position",
    "joining_date", "salary", "status", "user_id",
) + ENCRYPTED_FIELDS

_FORMAT_CHECKS = {
    "pan": (validate_pan, "Invalid PAN format"),
    "aadhaar": (validate_aadhaar, "Invalid Aadhaar number"),
    "ifsc": (validate_ifsc, "Invalid IFSC code"),
    "bank_account_number": (validate_account_number, "Invalid bank account number"),
    "phone": (validate_phone, "Invalid phone number"),
}


def _check_formats(data: Dict[str, Any]) -> None:
    for field, (check, message) in _FORMAT_CHECKS.items():
        value = data.get(field)
        if value and not check(value):
            raise ValidationException(message, field=field)


def _safe_decrypt(employee: Employee, field: str) -> Optional[str]:
    try:
        return field_encryption.decrypt(getattr(employee, field))
    except FieldDecryptionError:
        logger.warning(f"Could not decrypt {field} for employee {employee.employee_id}")
        return None


def employee_to_dict(employee: Employee) -> Dict[str, Any]:
    """Serialize an employee with PII decrypted and masked."""
    return {
        "id": str(employee.id),
        "user_id": str(employee.user_id) if employee.user_id else None,
        "employee_id": employee.employee_id,
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "email": employee.email,
        "phone": employee.phone,
        "department": employee.department,
        "position": employee.position,
        "joining_date": employee.joining_date.isoformat() if employee.joining_date else None,
        "salary": float(employee.salary) if employee.salary is not None else None,
        "status": employee.status.value,
        "pan": mask_pan(_safe_decrypt(employee, "pan")),
        "aadhaar": mask_aadhaar(_safe_decrypt(employee, "aadhaar")),
        "ifsc": _safe_decrypt(employee, "ifsc"),
        "bank_account_number": mask_account_number(_safe_decrypt(employee, "bank_account_number")),
        "created_at": employee.created_at.isoformat() if employee.created_at else None,
        "updated_at": employee.updated_at.isoformat() if employee.updated_at else None,
    }


class EmployeeService:
    """Service for employee records."""

    def __init__(self, db: AsyncSession, id_service: Optional[EmployeeIdService] = None):
        self.db = db
        self.id_service = id_service or EmployeeIdService(db)

    async def get_employee(self, employee_pk: uuid.UUID) -> Employee:
        result = await self.db.execute(select(Employee).where(Employee.id == employee_pk))
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundException("Employee", message="Employee not found")
        return employee

    async def get_by_employee_id(self, employee_id: str) -> Employee:
        if not is_valid_employee_id(employee_id):
            raise ValidationException("Invalid employee ID format", field="employee_id")

        result = await self.db.execute(select(Employee).where(Employee.employee_id == employee_id))
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundException("Employee", message="Employee not found")
        return employee

    async def list_employees(
        self,
        department: Optional[str] = None,
        status: Optional[EmployeeStatus] = None,
        search: Optional[str] = None,
    ) -> List[Employee]:
        query = select(Employee)
        if department:
            query = query.where(Employee.department == department)
        if status:
            query = query.where(Employee.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Employee.first_name.ilike(pattern),
                    Employee.last_name.ilike(pattern),
                    Employee.email.ilike(pattern),
                    Employee.employee_id.ilike(pattern),
                )
            )
        result = await self.db.execute(query.order_by(Employee.created_at.desc()))
        return list(result.scalars().all())

    async def email_exists(self, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        conditions = [func.lower(Employee.email) == email.strip().lower()]
        if exclude_id:
            conditions.append(Employee.id != exclude_id)
        result = await self.db.execute(select(Employee.id).where(and_(*conditions)).limit(1))
        return result.scalar_one_or_none() is not None

    async def add_employee(
        self,
        first_name: str,
        last_name: str,
        email: str,
        company_code: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        joining_date: Optional[date] = None,
        salary: Optional[Decimal] = None,
        pan: Optional[str] = None,
        aadhaar: Optional[str] = None,
        ifsc: Optional[str] = None,
        bank_account_number: Optional[str] = None,
    ) -> Employee:
        """
        Allocate an ID and stage a new employee in the current transaction.

        Flushes but does not commit, so callers can group it with other writes.
        """
        employee_id = await self.id_service.allocate(company_code)

        employee = Employee(
            employee_id=employee_id,
            user_id=user_id,
            first_name=first_name,
            last_name=last_name or "",
            email=email.strip().lower(),
            phone=phone,
            department=department,
            position=position,
            joining_date=joining_date,
            salary=salary,
            pan=field_encryption.encrypt(pan),
            aadhaar=field_encryption.encrypt(aadhaar.replace(" ", "") if aadhaar else aadhaar),
            ifsc=field_encryption.encrypt(ifsc),
            bank_account_number=field_encryption.encrypt(bank_account_number),
            status=EmployeeStatus.ACTIVE,
        )
        self.db.add(employee)
        await self.db.flush()
        return employee

    async def create_employee(self, data: Dict[str, Any], company_code: Optional[str] = None) -> Employee:
        """Create an employee record directly (HR action)."""
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise MissingFieldsException(missing)

        _check_formats(data)

        if await self.email_exists(data["email"]):
            raise DuplicateEntryException("Employee with this email already exists")

        fields = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS and k != "status"}
        employee = await self.add_employee(company_code=company_code, **fields)
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Employee created: {employee.employee_id}")
        return employee

    async def update_employee(self, employee_pk: uuid.UUID, data: Dict[str, Any]) -> Employee:
        """Update an employee. employee_id is immutable and silently dropped."""
        employee = await self.get_employee(employee_pk)

        updates = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        _check_formats(updates)

        if updates.get("email") and await self.email_exists(updates["email"], exclude_id=employee.id):
            raise DuplicateEntryException("Employee with this email already exists")

        for field, value in updates.items():
            if field in ENCRYPTED_FIELDS:
                if field == "aadhaar" and value:
                    value = value.replace(" ", "")
                value = field_encryption.encrypt(value)
            elif field == "email" and value:
                value = value.strip().lower()
            setattr(employee, field, value)

        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Employee updated: {employee.employee_id}")
        return employee

    async def deactivate_employee(self, employee_pk: uuid.UUID) -> Employee:
        """Soft delete."""
        employee = await self.get_employee(employee_pk)
        employee.status = EmployeeStatus.INACTIVE
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Employee deactivated: {employee.employee_id}")
        return employee

    async def preview_next_id(self, company_code: Optional[str] = None) -> str:
        """Next ID the allocator would hand out (nothing is reserved)."""
        return await self.id_service.allocate(company_code)

    async def get_stats(self) -> Dict[str, Any]:
        by_status = await self.db.execute(
            select(Employee.status, func.count(Employee.id)).group_by(Employee.status)
        )
        status_counts = {status.value: count for status, count in by_status.all()}

        by_department = await self.db.execute(
            select(Employee.department, func.count(Employee.id))
            .where(Employee.status == EmployeeStatus.ACTIVE)
            .group_by(Employee.department)
        )
        department_counts = [
            {"department": department or "Unassigned", "count": count}
            for department, count in by_department.all()
        ]

        return {
            "total": sum(status_counts.values()),
            "active": status_counts.get(EmployeeStatus.ACTIVE.value, 0),
            "inactive": status_counts.get(EmployeeStatus.INACTIVE.value, 0),
            "by_department": department_counts,
        }
