"""
WorkZen - Employees API Tests
"""

import re

import pytest
from sqlalchemy import select

from workzen.models.employee import Employee
from workzen.utils import field_encryption

EMPLOYEE = {
    "first_name": "Kavya",
    "last_name": "Rao",
    "email": "Kavya.Rao@example.com",
    "phone": "9988776655",
    "department": "Operations",
    "position": "Coordinator",
    "joining_date": "2026-02-01",
    "salary": "55000.00",
    "pan": "CDEFG3456H",
    "aadhaar": "3456 7890 1234",
    "ifsc": "SBIN0001111",
    "bank_account_number": "30001234567",
}


async def create(client, headers, **overrides):
    return await client.post("/api/employees", json={**EMPLOYEE, **overrides}, headers=headers)


class TestEmployeesAPI:
    """Employee records; PII is encrypted at rest and masked on the way out."""

    @pytest.mark.asyncio
    async def test_create_masks_and_encrypts(self, client, hr_headers, db_session):
        response = await create(client, hr_headers)

        assert response.status_code == 201, response.text
        employee = response.json()["employee"]
        assert re.fullmatch(r"OI\d{4}0001", employee["employee_id"])
        assert employee["email"] == "kavya.rao@example.com"
        assert employee["pan"] == "CDEFXXXX6H"
        assert employee["aadhaar"] == "XXXX XXXX 1234"
        assert employee["bank_account_number"] == "XXXX XXXX 4567"
        assert employee["status"] == "active"

        row = (await db_session.execute(select(Employee))).scalar_one()
        assert row.pan != "CDEFG3456H"
        assert field_encryption.decrypt(row.aadhaar) == "345678901234"

    @pytest.mark.asyncio
    async def test_create_with_company_code(self, client, admin_headers):
        response = await create(client, admin_headers, company_code="ZX")
        assert response.json()["employee"]["employee_id"].startswith("ZX")

    @pytest.mark.asyncio
    async def test_create_requires_hr(self, client, employee_headers):
        response = await create(client, employee_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_missing_fields(self, client, hr_headers):
        response = await client.post("/api/employees", json={"first_name": "Solo"}, headers=hr_headers)
        assert response.status_code == 400
        assert response.json()["missing_fields"] == ["last_name", "email"]

    @pytest.mark.asyncio
    async def test_create_invalid_pan(self, client, hr_headers):
        response = await create(client, hr_headers, pan="12345")
        assert response.status_code == 400
        assert response.json()["field"] == "pan"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, hr_headers):
        await create(client, hr_headers)
        response = await create(client, hr_headers, email="KAVYA.RAO@example.com")
        assert response.status_code == 409
        assert response.json()["error"] == "Employee with this email already exists"

    @pytest.mark.asyncio
    async def test_sequential_ids(self, client, hr_headers):
        first = (await create(client, hr_headers)).json()["employee"]["employee_id"]
        second = (await create(client, hr_headers, email="second@example.com")).json()["employee"]["employee_id"]
        assert int(second[-4:]) == int(first[-4:]) + 1

    @pytest.mark.asyncio
    async def test_get_by_business_id(self, client, hr_headers, employee_headers):
        created = (await create(client, hr_headers)).json()["employee"]

        response = await client.get(
            f"/api/employees/by-id/{created['employee_id']}", headers=employee_headers
        )
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_get_by_malformed_business_id(self, client, employee_headers):
        response = await client.get("/api/employees/by-id/EMP-1", headers=employee_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid employee ID format"

    @pytest.mark.asyncio
    async def test_get_unknown(self, client, employee_headers):
        response = await client.get("/api/employees/by-id/OI20269999", headers=employee_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_ignores_employee_id(self, client, hr_headers):
        created = (await create(client, hr_headers)).json()["employee"]

        response = await client.put(
            f"/api/employees/{created['id']}",
            json={"employee_id": "OI19990001", "position": "Lead", "pan": "ZZZZZ9999Z"},
            headers=hr_headers,
        )
        assert response.status_code == 200
        updated = response.json()["employee"]
        assert updated["employee_id"] == created["employee_id"]
        assert updated["position"] == "Lead"
        assert updated["pan"] == "ZZZZXXXX9Z"

    @pytest.mark.asyncio
    async def test_update_duplicate_email(self, client, hr_headers):
        await create(client, hr_headers)
        other = (await create(client, hr_headers, email="other@example.com")).json()["employee"]

        response = await client.put(
            f"/api/employees/{other['id']}", json={"email": "kavya.rao@example.com"}, headers=hr_headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_deactivate(self, client, hr_headers):
        created = (await create(client, hr_headers)).json()["employee"]

        response = await client.delete(f"/api/employees/{created['id']}", headers=hr_headers)
        assert response.status_code == 200
        assert response.json()["employee_id"] == created["employee_id"]

        response = await client.get("/api/employees?status=inactive", headers=hr_headers)
        assert [e["id"] for e in response.json()["employees"]] == [created["id"]]

    @pytest.mark.asyncio
    async def test_list_and_stats(self, client, hr_headers):
        await create(client, hr_headers)
        await create(client, hr_headers, email="ops2@example.com", first_name="Vikram")
        await create(client, hr_headers, email="fin@example.com", department="Finance")

        response = await client.get("/api/employees?department=Operations", headers=hr_headers)
        assert response.json()["count"] == 2

        response = await client.get("/api/employees?search=vikram", headers=hr_headers)
        assert response.json()["count"] == 1

        stats = (await client.get("/api/employees/stats", headers=hr_headers)).json()
        assert stats["total"] == 3
        assert stats["active"] == 3
        by_department = {d["department"]: d["count"] for d in stats["by_department"]}
        assert by_department == {"Operations": 2, "Finance": 1}

    @pytest.mark.asyncio
    async def test_generate_id_preview(self, client, hr_headers):
        response = await client.post("/api/employees/generate-id", json={}, headers=hr_headers)
        preview = response.json()["employee_id"]

        created = (await create(client, hr_headers)).json()["employee"]
        assert created["employee_id"] == preview
