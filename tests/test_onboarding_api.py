"""
WorkZen - Onboarding API Tests

End-to-end flow from HR invite through candidate steps to approval
and the new employee's first login.
"""

import re

import pytest
from httpx import AsyncClient

CANDIDATE = "arjun.mehta@example.com"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def invite(client: AsyncClient, headers: dict, email: str = CANDIDATE) -> str:
    """Create an invite and return the onboarding id."""
    response = await client.post(
        "/api/onboarding/invite",
        json={
            "candidate_email": email,
            "candidate_name": "Arjun Mehta",
            "department": "Finance",
            "position": "Analyst",
            "joining_date": "2026-08-03",
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["onboarding"]["id"]


def token_from(sent_emails) -> str:
    return re.search(r"/onboard\?token=([0-9a-f]{64})", sent_emails[-1].body_text).group(1)


async def complete_candidate_steps(client: AsyncClient, token: str) -> None:
    response = await client.put(
        f"/api/onboarding/personal/{token}",
        json={
            "full_name": "Arjun Kumar Mehta",
            "dob": "1996-11-02",
            "contact_number": "9123456780",
            "city": "Pune",
            "pincode": "411001",
            "pan_number": "BCDEF2345G",
            "aadhaar_number": "2345 6789 0123",
        },
    )
    assert response.status_code == 200, response.text

    response = await client.put(
        f"/api/onboarding/bank/{token}",
        json={
            "account_holder_name": "Arjun Mehta",
            "account_number": "123456789012",
            "ifsc_code": "ICIC0004321",
            "bank_name": "ICICI Bank",
        },
    )
    assert response.status_code == 200, response.text

    response = await client.post(
        f"/api/onboarding/upload/{token}",
        files={
            "pan": ("pan.png", PNG, "image/png"),
            "aadhaar": ("aadhaar.png", PNG, "image/png"),
        },
    )
    assert response.status_code == 200, response.text


class TestOnboardingFlow:
    """Invite -> steps -> submit -> approve -> login."""

    @pytest.mark.asyncio
    async def test_full_onboarding(self, client, hr_headers, admin_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)

        response = await client.get(f"/api/onboarding/validate/{token}")
        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "onboarding": {
                "candidate_name": "Arjun Mehta",
                "department": "Finance",
                "position": "Analyst",
                "status": "invited",
            },
        }

        await complete_candidate_steps(client, token)

        response = await client.post(f"/api/onboarding/submit/{token}")
        assert response.status_code == 200
        assert response.json()["status"] == "pending_review"

        response = await client.get("/api/onboarding/reviews/pending", headers=hr_headers)
        assert response.json()["count"] == 1
        pending = response.json()["onboardings"][0]
        assert pending["bank_info"]["account_number"] == "XXXX XXXX 9012"
        assert set(pending["documents"]) == {"pan", "aadhaar"}

        response = await client.put(f"/api/onboarding/approve/{pending['id']}", headers=admin_headers)
        assert response.status_code == 200, response.text
        employee_id = response.json()["employee_id"]
        assert re.fullmatch(r"OI\d{8}", employee_id)
        assert response.json()["email_sent"] is True

        welcome = sent_emails[-1]
        assert welcome.to == [CANDIDATE]
        temporary_password = re.search(r"Temporary password: (\S+)", welcome.body_text).group(1)

        response = await client.post(
            "/api/auth/login", json={"email": CANDIDATE, "password": temporary_password}
        )
        assert response.status_code == 200
        login = response.json()
        assert login["user"]["role"] == "employee"
        assert login["user"]["full_name"] == "Arjun Kumar Mehta"

        response = await client.get(
            f"/api/employees/by-id/{employee_id}",
            headers={"Authorization": f"Bearer {login['token']}"},
        )
        assert response.status_code == 200
        employee = response.json()
        assert employee["pan"] == "BCDEXXXX5G"
        assert employee["aadhaar"] == "XXXX XXXX 0123"
        assert employee["bank_account_number"] == "XXXX XXXX 9012"

        # A finished onboarding link is dead
        response = await client.get(f"/api/onboarding/validate/{token}")
        assert response.status_code == 400
        assert response.json()["error"] == "Onboarding already completed"

        response = await client.put(f"/api/onboarding/approve/{pending['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Onboarding already approved"


class TestCandidateEndpoints:

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        response = await client.get("/api/onboarding/validate/deadbeef")
        assert response.status_code == 404
        assert response.json()["error"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_step_progress(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)

        response = await client.put(
            f"/api/onboarding/personal/{token}", json={"full_name": "Arjun Mehta"}
        )
        assert response.json()["step_completed"] == 1

        response = await client.put(
            f"/api/onboarding/bank/{token}",
            json={"account_number": "123456789012", "ifsc_code": "ICIC0004321"},
        )
        assert response.json()["step_completed"] == 2

        response = await client.put(f"/api/onboarding/personal/{token}", json={"city": "Nagpur"})
        assert response.json()["step_completed"] == 2

    @pytest.mark.asyncio
    async def test_invalid_pan(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)

        response = await client.put(
            f"/api/onboarding/personal/{token}", json={"pan_number": "BAD"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid PAN format",
            "code": "VALIDATION_ERROR",
            "field": "pan_number",
        }

    @pytest.mark.asyncio
    async def test_duplicate_pan(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        first = token_from(sent_emails)
        await invite(client, hr_headers, email="someone.else@example.com")
        second = token_from(sent_emails)

        await client.put(f"/api/onboarding/personal/{first}", json={"pan_number": "BCDEF2345G"})
        response = await client.put(
            f"/api/onboarding/personal/{second}", json={"pan_number": "BCDEF2345G"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "PAN number already exists"

    @pytest.mark.asyncio
    async def test_upload_requires_a_file(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)

        response = await client.post(f"/api/onboarding/upload/{token}", data={"note": "x"})
        assert response.status_code == 400
        assert response.json()["error"] == "No documents uploaded"

    @pytest.mark.asyncio
    async def test_submit_incomplete(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)

        response = await client.post(f"/api/onboarding/submit/{token}")
        assert response.status_code == 400
        assert response.json()["error"] == "Please complete all steps"

    @pytest.mark.asyncio
    async def test_details(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)
        await complete_candidate_steps(client, token)

        response = await client.get(f"/api/onboarding/details/{token}")
        details = response.json()["onboarding"]
        assert details["candidate_email"] == CANDIDATE
        assert details["bank_info"]["account_number"] == "XXXX XXXX 9012"
        assert details["personal_info"]["dob"] == "1996-11-02"


class TestHrEndpoints:

    @pytest.mark.asyncio
    async def test_invite_requires_hr(self, client, employee_headers):
        response = await client.post(
            "/api/onboarding/invite",
            json={"candidate_email": CANDIDATE, "candidate_name": "Arjun"},
            headers=employee_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invite_requires_login(self, client):
        response = await client.post(
            "/api/onboarding/invite",
            json={"candidate_email": CANDIDATE, "candidate_name": "Arjun"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invite_response(self, client, hr_headers, sent_emails):
        response = await client.post(
            "/api/onboarding/invite",
            json={"candidate_email": CANDIDATE, "candidate_name": "Arjun Mehta"},
            headers=hr_headers,
        )
        data = response.json()
        assert data["onboarding"]["status"] == "invited"
        assert data["note"] == f"Email sent to {CANDIDATE}"

    @pytest.mark.asyncio
    async def test_request_changes_and_reject(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)
        await complete_candidate_steps(client, token)
        await client.post(f"/api/onboarding/submit/{token}")
        pending = (await client.get("/api/onboarding/reviews/pending", headers=hr_headers)).json()
        onboarding_id = pending["onboardings"][0]["id"]

        response = await client.put(
            f"/api/onboarding/request-changes/{onboarding_id}",
            json={"comments": "Upload a clearer Aadhaar scan", "fields_to_change": ["aadhaar"]},
            headers=hr_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Change request sent successfully"
        assert "Upload a clearer Aadhaar scan" in sent_emails[-1].body_text

        response = await client.put(
            f"/api/onboarding/reject/{onboarding_id}",
            json={"reason": "Identity could not be verified"},
            headers=hr_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Onboarding rejected"

        response = await client.put(
            f"/api/onboarding/personal/{token}", json={"city": "Pune"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Onboarding has been rejected"

    @pytest.mark.asyncio
    async def test_approve_unknown(self, client, hr_headers):
        response = await client.put(
            "/api/onboarding/approve/00000000-0000-0000-0000-000000000000", headers=hr_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_ocr_missing_document(self, client, hr_headers, sent_emails):
        await invite(client, hr_headers)
        token = token_from(sent_emails)
        details = (await client.get(f"/api/onboarding/details/{token}")).json()["onboarding"]

        response = await client.post(
            f"/api/onboarding/ocr/extract/{details['id']}",
            json={"document_type": "pan"},
            headers=hr_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Document not found"
