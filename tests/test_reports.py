"""
Reports filed against biodata and their review by admins.
"""
from __future__ import annotations

import pytest

from tests.factories import body, submit


@pytest.fixture
def report_form():
    def build(profile_id, **overrides):
        form = {
            "profileId": profile_id,
            "reason": "Fake information",
            "description": "The listed profession is not real",
        }
        form.update(overrides)
        return form
    return build


async def _approved_profile(client, headers, admin_headers) -> str:
    profile_id = (await submit(client, headers))["profileId"]
    response = await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)
    assert response.status_code == 200
    return profile_id


@pytest.mark.asyncio
async def test_file_report(client, owner, other_user, admin, report_form) -> None:
    _, headers = owner
    visitor_id, visitor_headers = other_user
    _, admin_headers = admin
    profile_id = await _approved_profile(client, headers, admin_headers)

    response = await client.post(
        "/api/reports", json=report_form(profile_id, priority="high"), headers=visitor_headers
    )

    assert response.status_code == 201
    report = body(response)
    assert report["reported_by"] == visitor_id
    assert report["status"] == "pending"
    assert report["priority"] == "high"
    assert report["action_taken"] == "none"
    assert report["reviewed_by"] is None


@pytest.mark.asyncio
async def test_report_requires_login(client, report_form) -> None:
    response = await client.post("/api/reports", json=report_form("BIO-1"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_pending_biodata_cannot_be_reported(client, owner, other_user, report_form) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    profile_id = (await submit(client, headers))["profileId"]

    response = await client.post("/api/reports", json=report_form(profile_id), headers=visitor_headers)
    assert response.status_code == 404
    response = await client.post("/api/reports", json=report_form("BIO-MISSING"), headers=visitor_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_own_biodata_and_duplicates_are_refused(client, owner, other_user, admin, report_form) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    profile_id = await _approved_profile(client, headers, admin_headers)

    response = await client.post("/api/reports", json=report_form(profile_id), headers=headers)
    assert response.status_code == 403

    first = await client.post("/api/reports", json=report_form(profile_id), headers=visitor_headers)
    assert first.status_code == 201
    again = await client.post(
        "/api/reports", json=report_form(profile_id, reason="Spam/Scam"), headers=visitor_headers
    )
    assert again.status_code == 409

    # Once the first report is closed a new one may be filed
    await client.put(
        f"/api/admin/reports/{body(first)['id']}/action",
        json={"action": "dismiss"},
        headers=admin_headers,
    )
    later = await client.post("/api/reports", json=report_form(profile_id), headers=visitor_headers)
    assert later.status_code == 201


@pytest.mark.asyncio
async def test_invalid_report_fields(client, other_user, report_form) -> None:
    _, visitor_headers = other_user
    response = await client.post(
        "/api/reports", json=report_form("BIO-1", reason="Boring"), headers=visitor_headers
    )
    assert response.status_code == 422
    response = await client.post(
        "/api/reports", json=report_form("BIO-1", description=""), headers=visitor_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_review_of_reports(client, owner, other_user, admin, report_form) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    admin_id, admin_headers = admin
    profile_id = await _approved_profile(client, headers, admin_headers)
    report_id = body(await client.post(
        "/api/reports", json=report_form(profile_id, priority="high"), headers=visitor_headers
    ))["id"]

    assert (await client.get("/api/admin/reports", headers=visitor_headers)).status_code == 403
    listing = body(await client.get("/api/admin/reports", params={"priority": "high"}, headers=admin_headers))
    assert [r["id"] for r in listing["items"]] == [report_id]
    assert body(await client.get("/api/admin/reports", params={"priority": "low"}, headers=admin_headers))["total"] == 0

    response = await client.put(
        f"/api/admin/reports/{report_id}/action",
        json={"action": "investigate", "notes": "Checking with the family"},
        headers=admin_headers,
    )
    data = body(response)
    assert data["message"] == "Report investigate successfully"
    assert data["report"]["status"] == "under_review"
    assert data["report"]["admin_notes"] == "Checking with the family"

    data = body(await client.put(
        f"/api/admin/reports/{report_id}/action",
        json={"action": "resolve", "actionTaken": "warning_sent"},
        headers=admin_headers,
    ))
    report = data["report"]
    assert report["status"] == "resolved"
    assert report["action_taken"] == "warning_sent"
    assert report["admin_notes"] == "Checking with the family"
    assert report["reviewed_by"] == admin_id
    assert report["reviewed_at"] is not None

    resolved = body(await client.get("/api/admin/reports", params={"status": "resolved"}, headers=admin_headers))
    assert resolved["total"] == 1

    log = body(await client.get(
        "/api/admin/actions", params={"target_type": "report"}, headers=admin_headers
    ))
    assert [entry["action"] for entry in log["items"]] == ["resolve", "investigate"]
    assert {entry["target_id"] for entry in log["items"]} == {str(report_id)}


@pytest.mark.asyncio
async def test_action_on_missing_report(client, admin) -> None:
    _, admin_headers = admin
    response = await client.put(
        "/api/admin/reports/999/action", json={"action": "dismiss"}, headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleting_biodata_removes_its_reports(client, owner, other_user, admin, report_form) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    profile_id = await _approved_profile(client, headers, admin_headers)
    await client.post("/api/reports", json=report_form(profile_id), headers=visitor_headers)

    response = await client.delete(f"/api/admin/profiles/{profile_id}", headers=admin_headers)

    assert body(response)["reportsRemoved"] == 1
    assert body(await client.get("/api/admin/reports", headers=admin_headers))["total"] == 0
