"""
Biodata submission, owner edits and the public read path.
"""
from __future__ import annotations

import pytest

from app.core.notifications import NotificationEvent, notifier
from tests.factories import body, submit, valid_form


async def _approve(client, admin_headers, profile_id: str) -> None:
    response = await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)
    assert response.status_code == 200, response.text


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_submit_complete_form_enters_review(client, owner) -> None:
    user_id, headers = owner
    await client.put(
        "/api/drafts/me", json={"currentStep": 4, "draftData": valid_form()}, headers=headers
    )

    response = await client.post("/api/profiles", json=valid_form(), headers=headers)

    assert response.status_code == 201, response.text
    data = body(response)
    assert data["draftDeleted"] is True
    profile = data["profile"]
    assert profile["status"] == "pending_approval"
    assert profile["userId"] == user_id
    assert profile["profileId"].startswith("BIO")
    assert profile["editCount"] == 0
    assert profile["rejectionReason"] is None
    assert profile["data"]["contactInformation"] == "Father: 01711-000000"
    assert profile["data"]["guardianKnowledge"] == "Yes"

    assert body(await client.get("/api/drafts/me", headers=headers)) is None
    me = body(await client.get("/api/users/me", headers=headers))
    assert me["has_profile"] is True


@pytest.mark.asyncio
async def test_incomplete_form_is_refused_and_draft_kept(client, owner) -> None:
    _, headers = owner
    partial = valid_form(profession="", age="12")
    await client.put("/api/drafts/me", json={"currentStep": 3, "draftData": partial}, headers=headers)

    response = await client.post("/api/profiles", json=partial, headers=headers)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert set(detail["errors"]) == {"profession", "age"}
    assert detail["message"].startswith("2 fields need attention in:")
    assert (await client.get("/api/profiles/me", headers=headers)).status_code == 404
    draft = body(await client.get("/api/drafts/me", headers=headers))
    assert draft["draftData"] == partial


@pytest.mark.asyncio
async def test_second_submission_conflicts(client, owner) -> None:
    _, headers = owner
    await submit(client, headers)

    response = await client.post("/api/profiles", json=valid_form(), headers=headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_submit_stored_draft(client, owner) -> None:
    _, headers = owner
    await client.put(
        "/api/drafts/me", json={"currentStep": 4, "draftData": valid_form(gender="Female")}, headers=headers
    )

    response = await client.post("/api/profiles/submit-draft", headers=headers)

    assert response.status_code == 201, response.text
    assert body(response)["profile"]["data"]["gender"] == "Female"
    assert body(await client.get("/api/drafts/me", headers=headers)) is None


@pytest.mark.asyncio
async def test_submit_without_draft_is_not_found(client, owner) -> None:
    _, headers = owner
    response = await client.post("/api/profiles/submit-draft", headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_submission_publishes_event(client, owner) -> None:
    _, headers = owner
    received = []

    async def listener(event, payload):
        received.append((event, payload))

    notifier.subscribe(NotificationEvent.PROFILE_SUBMITTED, listener)
    profile = await submit(client, headers)

    assert received == [
        (NotificationEvent.PROFILE_SUBMITTED, {"profile_id": profile["profileId"], "user_id": profile["userId"]})
    ]


# ---------------------------------------------------------------------------
# Owner edits
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_edit_of_approved_biodata_returns_it_to_review(client, owner, admin) -> None:
    _, headers = owner
    _, admin_headers = admin
    profile = await submit(client, headers)
    await _approve(client, admin_headers, profile["profileId"])

    response = await client.put(
        "/api/profiles/me", json={"profession": "Architect", "age": "29"}, headers=headers
    )

    assert response.status_code == 200, response.text
    data = body(response)
    assert data["requiresReview"] is True
    assert sorted(data["changedFields"]) == ["age", "profession"]
    edited = data["profile"]
    assert edited["status"] == "pending_approval"
    assert edited["editCount"] == 1
    assert edited["lastEditDate"] is not None
    assert edited["data"]["profession"] == "Architect"

    listing = body(await client.get("/api/profiles"))
    assert listing["total"] == 0


@pytest.mark.asyncio
async def test_edit_while_pending_counts_but_needs_no_new_review(client, owner) -> None:
    _, headers = owner
    await submit(client, headers)

    data = body(await client.put("/api/profiles/me", json={"weight": "72 kg"}, headers=headers))

    assert data["requiresReview"] is False
    assert data["profile"]["editCount"] == 1
    assert data["profile"]["editedFields"] == ["weight"]


@pytest.mark.asyncio
async def test_declarations_cannot_be_edited(client, owner) -> None:
    _, headers = owner
    await submit(client, headers)

    response = await client.put(
        "/api/profiles/me",
        json={"guardianKnowledge": "No", "informationTruthfulness": "No", "height": "5'9\""},
        headers=headers,
    )

    assert response.status_code == 200, response.text
    data = body(response)
    assert data["changedFields"] == ["height"]
    assert data["profile"]["data"]["guardianKnowledge"] == "Yes"
    assert data["profile"]["data"]["informationTruthfulness"] == "Yes"


@pytest.mark.asyncio
async def test_invalid_edit_changes_nothing(client, owner) -> None:
    _, headers = owner
    await submit(client, headers)

    response = await client.put("/api/profiles/me", json={"age": "15"}, headers=headers)

    assert response.status_code == 422
    mine = body(await client.get("/api/profiles/me", headers=headers))
    assert mine["editCount"] == 0
    assert mine["data"]["age"] == "28"


@pytest.mark.asyncio
async def test_only_the_owner_may_edit_by_profile_id(client, owner, other_user) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    profile = await submit(client, headers)

    response = await client.put(
        f"/api/profiles/{profile['profileId']}", json={"age": "40"}, headers=visitor_headers
    )
    assert response.status_code == 403

    response = await client.put("/api/profiles/BIO-NOPE", json={"age": "40"}, headers=visitor_headers)
    assert response.status_code == 404

    response = await client.put(
        f"/api/profiles/{profile['profileId']}", json={"age": "40"}, headers=headers
    )
    assert response.status_code == 200
    assert body(response)["profile"]["data"]["age"] == "40"


# ---------------------------------------------------------------------------
# Public read path
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_public_listing_shows_only_approved_without_contacts(client, owner, other_user, admin) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    profile = await submit(client, headers)

    assert body(await client.get("/api/profiles"))["total"] == 0
    assert (await client.get(f"/api/profiles/{profile['profileId']}")).status_code == 404

    await _approve(client, admin_headers, profile["profileId"])

    listing = body(await client.get("/api/profiles", headers=visitor_headers))
    assert listing["total"] == 1
    item = listing["items"][0]
    assert item["profileId"] == profile["profileId"]
    assert item["gender"] == "Male"
    assert item["age"] == 28
    assert "contactInformation" not in item["data"]
    assert "personalContactInfo" not in item["data"]

    assert body(await client.get("/api/profiles", params={"gender": "Female"}))["total"] == 0


@pytest.mark.asyncio
async def test_views_are_counted_for_other_users_only(client, owner, other_user, admin) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    profile = await submit(client, headers)
    await _approve(client, admin_headers, profile["profileId"])

    await client.get(f"/api/profiles/{profile['profileId']}", headers=visitor_headers)
    await client.get(f"/api/profiles/{profile['profileId']}")
    await client.get(f"/api/profiles/{profile['profileId']}", headers=headers)

    mine = body(await client.get("/api/profiles/me", headers=headers))
    assert mine["viewCount"] == 2


@pytest.mark.asyncio
async def test_owner_can_delete_biodata(client, owner) -> None:
    _, headers = owner
    profile = await submit(client, headers)

    response = await client.delete("/api/profiles/me", headers=headers)

    assert body(response) == {"profileId": profile["profileId"], "deleted": True}
    assert (await client.get("/api/profiles/me", headers=headers)).status_code == 404
    me = body(await client.get("/api/users/me", headers=headers))
    assert me["has_profile"] is False
    # Submitting again is allowed
    await submit(client, headers)
