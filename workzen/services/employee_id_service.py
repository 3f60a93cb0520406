"""
WorkZen - Employee ID Allocation Service

Issues human-readable employee identifiers:

    {company_code}{YYYY}{serial:04d}    e.g. OI20250007

The serial is the number of employees who joined in the current calendar
year plus one, so it restarts every January. The composed ID is probed
against existing employee_id values. On a collision the serial jumps past
the highest serial already issued under the same prefix and is then stepped
forward while taken. The unique constraint on employees.employee_id is the
final guard against two concurrent allocations picking the same value.
"""

import logging
import re
from datetime import date
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from workzen.config import settings
from workzen.models.base import utcnow
from workzen.models.employee import Employee
from workzen.utils.error_handling import AppException, ErrorCode, ValidationException

logger = logging.getLogger(__name__)

EMPLOYEE_ID_PATTERN = re.compile(r"^[A-Z]{2}\d{4}\d{4}$")
COMPANY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
MAX_SERIAL = 9999
MAX_ALLOCATION_ATTEMPTS = 50


class EmployeeIdAllocationError(AppException):
    """No free identifier could be allocated."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            code=ErrorCode.ALLOCATION_FAILED,
            message=message,
            original_error=original_error,
        )


def format_employee_id(company_code: str, year: int, serial: int) -> str:
    return f"{company_code}{year}{serial:04d}"


def is_valid_employee_id(value: Optional[str]) -> bool:
    """Check an identifier against the CCYYYYNNNN format."""
    return bool(value) and bool(EMPLOYEE_ID_PATTERN.match(value))


class EmployeeIdService:
    """Allocator for employee business identifiers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def normalize_company_code(company_code: Optional[str]) -> str:
        code = (company_code or settings.company_code).strip().upper()
        if not COMPANY_CODE_PATTERN.match(code):
            raise ValidationException(
                "Company code must be exactly two letters",
                field="company_code",
            )
        return code

    async def count_joined_in_year(self, year: int) -> int:
        result = await self.db.execute(
            select(func.count(Employee.id)).where(
                and_(
                    Employee.joining_date >= date(year, 1, 1),
                    Employee.joining_date < date(year + 1, 1, 1),
                )
            )
        )
        return result.scalar_one()

    async def exists(self, employee_id: str) -> bool:
        result = await self.db.execute(
            select(Employee.id).where(Employee.employee_id == employee_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def highest_serial(self, company_code: str, year: int) -> int:
        """Largest serial issued under {company_code}{year}, or 0."""
        prefix = f"{company_code}{year}"
        result = await self.db.execute(
            select(func.max(Employee.employee_id)).where(
                and_(
                    Employee.employee_id.like(f"{prefix}%"),
                    func.length(Employee.employee_id) == len(prefix) + 4,
                )
            )
        )
        highest = result.scalar_one_or_none()
        if not is_valid_employee_id(highest):
            return 0
        return int(highest[-4:])

    async def allocate(self, company_code: Optional[str] = None) -> str:
        """
        Allocate the next free employee ID for the current year.

        Args:
            company_code: Two-letter company prefix (defaults to settings.company_code)

        Raises:
            ValidationException: Invalid company code
            EmployeeIdAllocationError: Database failure or no free serial
        """
        code = self.normalize_company_code(company_code)
        year = utcnow().year

        try:
            serial = await self.count_joined_in_year(year) + 1
            candidate = format_employee_id(code, year, serial)
            if not await self.exists(candidate):
                logger.info(f"Allocated employee ID {candidate}")
                return candidate

            # IDs held by joiners of other years (or with no joining date)
            # are not counted, so resume after the highest issued serial
            logger.warning(f"Employee ID {candidate} already taken, skipping past issued serials")
            serial = max(serial, await self.highest_serial(code, year)) + 1

            for _ in range(MAX_ALLOCATION_ATTEMPTS):
                if serial > MAX_SERIAL:
                    break
                candidate = format_employee_id(code, year, serial)
                if not await self.exists(candidate):
                    logger.info(f"Allocated employee ID {candidate}")
                    return candidate
                logger.warning(f"Employee ID {candidate} already taken, trying next serial")
                serial += 1
        except SQLAlchemyError as e:
            logger.error(f"Employee ID allocation failed for {code}{year}: {e}")
            raise EmployeeIdAllocationError("Failed to generate employee ID", original_error=e) from e

        raise EmployeeIdAllocationError(f"No free employee ID available for {code}{year}")
