"""
WorkZen - Employees Router

Reads need any authenticated user; writes need admin or HR officer.
PII leaves this router masked.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.database import get_async_session
from workzen.dependencies import get_current_active_user, require_role
from workzen.models.employee import EmployeeStatus
from workzen.models.user import User
from workzen.schemas.employee import (
    EmployeeCreateRequest,
    EmployeeUpdateRequest,
    GenerateIdRequest,
)
from workzen.services.employee_service import EmployeeService, employee_to_dict
from workzen.utils.permissions import HR_ROLES


router = APIRouter(prefix="/employees", tags=["Employees"])


@router.get("")
async def list_employees(
    department: Optional[str] = None,
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    employees = await EmployeeService(db).list_employees(
        department=department, status=status_filter, search=search
    )
    return {"count": len(employees), "employees": [employee_to_dict(e) for e in employees]}


@router.get("/stats")
async def get_employee_stats(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    return await EmployeeService(db).get_stats()


@router.post("/generate-id")
async def generate_employee_id(
    payload: GenerateIdRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    """Preview the next identifier; nothing is reserved."""
    employee_id = await EmployeeService(db).preview_next_id(payload.company_code)
    return {"employee_id": employee_id}


@router.get("/by-id/{employee_id}")
async def get_employee_by_business_id(
    employee_id: str,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    employee = await EmployeeService(db).get_by_employee_id(employee_id)
    return employee_to_dict(employee)


@router.get("/{employee_pk}")
async def get_employee(
    employee_pk: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    employee = await EmployeeService(db).get_employee(employee_pk)
    return employee_to_dict(employee)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreateRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    data = payload.model_dump(exclude_none=True)
    company_code = data.pop("company_code", None)
    employee = await EmployeeService(db).create_employee(data, company_code=company_code)
    return {"message": "Employee created successfully", "employee": employee_to_dict(employee)}


@router.put("/{employee_pk}")
async def update_employee(
    employee_pk: uuid.UUID,
    payload: EmployeeUpdateRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    employee = await EmployeeService(db).update_employee(
        employee_pk, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Employee updated successfully", "employee": employee_to_dict(employee)}


@router.delete("/{employee_pk}")
async def deactivate_employee(
    employee_pk: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_role(HR_ROLES)),
):
    employee = await EmployeeService(db).deactivate_employee(employee_pk)
    return {"message": "Employee deactivated successfully", "employee_id": employee.employee_id}
