"""
WorkZen - Employee ID Allocation Tests
"""

from datetime import date
from typing import Optional

import pytest

from workzen.models.base import utcnow
from workzen.models.employee import Employee
from workzen.services.employee_id_service import (
    EmployeeIdService,
    format_employee_id,
    is_valid_employee_id,
)
from workzen.utils.error_handling import ValidationException


async def add_employee(db, employee_id: str, joining_date: Optional[date], email: str) -> Employee:
    employee = Employee(
        employee_id=employee_id,
        first_name="Existing",
        last_name="Employee",
        email=email,
        joining_date=joining_date,
    )
    db.add(employee)
    await db.commit()
    return employee


class TestEmployeeIdAllocation:

    @pytest.mark.asyncio
    async def test_first_id_of_the_year(self, db_session):
        """An empty table yields serial 0001 for the current year."""
        year = utcnow().year
        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0001"

    @pytest.mark.asyncio
    async def test_serial_follows_current_year_joiners(self, db_session):
        year = utcnow().year
        await add_employee(db_session, f"OI{year}0001", date(year, 1, 15), "a@workzen.example.com")
        await add_employee(db_session, f"OI{year}0002", date(year, 2, 1), "b@workzen.example.com")

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0003"

    @pytest.mark.asyncio
    async def test_last_year_joiners_are_not_counted(self, db_session):
        year = utcnow().year
        await add_employee(db_session, f"OI{year - 1}0001", date(year - 1, 6, 1), "old@workzen.example.com")

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0001"

    @pytest.mark.asyncio
    async def test_collision_steps_to_next_serial(self, db_session):
        """An ID that exists without a matching joiner count is skipped."""
        year = utcnow().year
        # Joined last year but holds this year's first ID
        await add_employee(db_session, f"OI{year}0001", date(year - 1, 12, 31), "odd@workzen.example.com")

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0002"

    @pytest.mark.asyncio
    async def test_next_year_joiners_holding_current_prefix(self, db_session):
        """Many uncounted holders of this year's prefix do not exhaust allocation."""
        year = utcnow().year
        for serial in range(1, 61):
            db_session.add(Employee(
                employee_id=format_employee_id("OI", year, serial),
                first_name="Future",
                last_name=f"Joiner{serial}",
                email=f"future{serial}@workzen.example.com",
                joining_date=date(year + 1, 1, 5),
            ))
        await db_session.commit()

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0061"

    @pytest.mark.asyncio
    async def test_holders_without_joining_date(self, db_session):
        year = utcnow().year
        await add_employee(db_session, f"OI{year}0001", None, "nodate1@workzen.example.com")
        await add_employee(db_session, f"OI{year}0002", None, "nodate2@workzen.example.com")

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0003"

    @pytest.mark.asyncio
    async def test_other_company_prefix_does_not_shift_serial(self, db_session):
        year = utcnow().year
        await add_employee(db_session, f"OI{year}0001", None, "oi@workzen.example.com")
        await add_employee(db_session, f"AB{year}0042", None, "ab@workzen.example.com")

        employee_id = await EmployeeIdService(db_session).allocate("OI")
        assert employee_id == f"OI{year}0002"

    @pytest.mark.asyncio
    async def test_company_code_is_normalized(self, db_session):
        year = utcnow().year
        employee_id = await EmployeeIdService(db_session).allocate(" ab ")
        assert employee_id == f"AB{year}0001"

    @pytest.mark.asyncio
    async def test_default_company_code_from_settings(self, db_session):
        employee_id = await EmployeeIdService(db_session).allocate()
        assert is_valid_employee_id(employee_id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["A", "ABC", "A1", "12"])
    async def test_invalid_company_code(self, db_session, code):
        with pytest.raises(ValidationException) as exc_info:
            await EmployeeIdService(db_session).allocate(code)
        assert exc_info.value.field == "company_code"


class TestEmployeeIdFormat:

    def test_format_pads_serial(self):
        assert format_employee_id("OI", 2025, 7) == "OI20250007"

    @pytest.mark.parametrize("value,expected", [
        ("OI20250007", True),
        ("oi20250007", False),
        ("OI2025007", False),
        ("OI202500071", False),
        ("", False),
        (None, False),
    ])
    def test_is_valid_employee_id(self, value, expected):
        assert is_valid_employee_id(value) is expected
