"""
Admin moderation of biodata and accounts, and the audit log.
"""
from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.db.base import Base
from app.core.db.engine import _configure_sqlite_connection, _get_engine_options
from app.core.exceptions import NotFoundError
from app.core.notifications import NotificationEvent, notifier
from app.modules.moderation.models import ModerationActionType
from app.modules.moderation.service import ModerationService
from app.modules.profiles.lifecycle import ProfileStatus
from app.modules.profiles.service import ProfilesService
from app.modules.users.models import User
from tests.factories import PASSWORD, body, make_user, submit, valid_form


async def _actions(client, admin_headers, **params):
    return body(await client.get("/api/admin/actions", params=params, headers=admin_headers))


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, owner) -> None:
    _, headers = owner
    assert (await client.get("/api/admin/profiles/pending", headers=headers)).status_code == 403
    assert (await client.get("/api/admin/profiles/pending")).status_code == 401


@pytest.mark.asyncio
async def test_review_cycle_end_to_end(client, owner, admin) -> None:
    """Submit, reject, fix, approve: the rejection is visible until approval clears it."""
    _, headers = owner
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]

    pending = body(await client.get("/api/admin/profiles/pending", headers=admin_headers))
    assert [p["profileId"] for p in pending["items"]] == [profile_id]

    # A blank reason is refused before anything changes
    response = await client.put(
        f"/api/admin/profiles/{profile_id}/reject", json={"reason": "   "}, headers=admin_headers
    )
    assert response.status_code == 422
    mine = body(await client.get("/api/profiles/me", headers=headers))
    assert mine["status"] == "pending_approval"

    response = await client.put(
        f"/api/admin/profiles/{profile_id}/reject",
        json={"reason": "Photo and profession do not match"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert body(response)["changed"] is True
    mine = body(await client.get("/api/profiles/me", headers=headers))
    assert mine["status"] == "rejected"
    assert mine["rejectionReason"] == "Photo and profession do not match"

    # Owner fixes it: back to review, old reason kept as history
    edited = body(await client.put("/api/profiles/me", json={"profession": "Teacher"}, headers=headers))
    assert edited["requiresReview"] is True
    assert edited["profile"]["status"] == "pending_approval"
    assert edited["profile"]["rejectionReason"] is None
    assert edited["profile"]["previousRejectionReason"] == "Photo and profession do not match"

    response = await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)
    approved = body(response)
    assert approved["changed"] is True
    assert approved["profile"]["status"] == "approved"
    assert approved["profile"]["rejectionReason"] is None
    assert approved["profile"]["previousRejectionReason"] is None

    listing = body(await client.get("/api/profiles"))
    assert [p["profileId"] for p in listing["items"]] == [profile_id]

    # Approving again is harmless and leaves no audit record
    again = body(await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers))
    assert again["changed"] is False
    assert again["message"] == "Biodata was already approved"

    log = await _actions(client, admin_headers, target_type="profile", target_id=profile_id)
    assert [entry["action"] for entry in log["items"]] == ["approve", "reject"]


@pytest.mark.asyncio
async def test_reject_same_reason_twice_is_a_noop(client, owner, admin) -> None:
    _, headers = owner
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]
    url = f"/api/admin/profiles/{profile_id}/reject"

    first = body(await client.put(url, json={"reason": "Incomplete"}, headers=admin_headers))
    second = body(await client.put(url, json={"reason": "Incomplete"}, headers=admin_headers))
    third = body(await client.put(url, json={"reason": "Fake details"}, headers=admin_headers))

    assert (first["changed"], second["changed"], third["changed"]) == (True, False, True)
    assert third["profile"]["rejectionReason"] == "Fake details"
    log = await _actions(client, admin_headers, target_id=profile_id)
    assert log["total"] == 2


@pytest.mark.asyncio
async def test_approved_biodata_can_be_rejected(client, owner, admin) -> None:
    _, headers = owner
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]
    await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)

    rejected = body(await client.put(
        f"/api/admin/profiles/{profile_id}/reject", json={"reason": "Reported as fake"}, headers=admin_headers
    ))

    assert rejected["profile"]["status"] == "rejected"
    assert body(await client.get("/api/profiles"))["total"] == 0


@pytest.mark.asyncio
async def test_approve_after_delete_is_not_found(client, owner, admin) -> None:
    _, headers = owner
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]

    response = await client.delete(f"/api/admin/profiles/{profile_id}", headers=admin_headers)
    assert body(response) == {"profileId": profile_id, "deleted": True, "reportsRemoved": 0}

    response = await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)
    assert response.status_code == 404
    assert (await client.get(f"/api/admin/profiles/{profile_id}", headers=admin_headers)).status_code == 404
    assert (await client.delete(f"/api/admin/profiles/{profile_id}", headers=admin_headers)).status_code == 404
    me = body(await client.get("/api/users/me", headers=headers))
    assert me["has_profile"] is False


@pytest.mark.asyncio
async def test_restricted_owner_is_hidden_but_keeps_status(client, owner, other_user, admin) -> None:
    owner_id, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]
    await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)

    response = await client.put(f"/api/admin/users/{owner_id}/restrict", headers=admin_headers)
    assert body(response)["user"]["is_restricted"] is True

    assert body(await client.get("/api/profiles", headers=visitor_headers))["total"] == 0
    assert (await client.get(f"/api/profiles/{profile_id}", headers=visitor_headers)).status_code == 404
    admin_view = body(await client.get(f"/api/admin/profiles/{profile_id}", headers=admin_headers))
    assert admin_view["status"] == "approved"
    restricted = body(await client.get("/api/admin/users/restricted", headers=admin_headers))
    assert [u["id"] for u in restricted["items"]] == [owner_id]

    # Restricted users do not see other people's biodata either
    assert body(await client.get("/api/profiles", headers=headers))["total"] == 0

    again = body(await client.put(f"/api/admin/users/{owner_id}/restrict", headers=admin_headers))
    assert again["changed"] is False

    await client.put(f"/api/admin/users/{owner_id}/unrestrict", headers=admin_headers)
    assert body(await client.get("/api/profiles", headers=visitor_headers))["total"] == 1


@pytest.mark.asyncio
async def test_banned_user_cannot_log_in_or_edit(client, owner, admin) -> None:
    owner_id, headers = owner
    _, admin_headers = admin
    profile_id = (await submit(client, headers))["profileId"]
    await client.put(f"/api/admin/profiles/{profile_id}/approve", headers=admin_headers)

    response = await client.put(f"/api/admin/users/{owner_id}/ban", headers=admin_headers)
    assert body(response)["message"] == "User banned"

    login = await client.post("/api/users/login", json={"username": "owner", "password": PASSWORD})
    assert login.status_code == 403
    assert (await client.put("/api/profiles/me", json={"age": "30"}, headers=headers)).status_code == 403
    assert body(await client.get("/api/profiles"))["total"] == 0
    mine = body(await client.get("/api/profiles/me", headers=headers))
    assert mine["status"] == "approved"

    await client.put(f"/api/admin/users/{owner_id}/unban", headers=admin_headers)
    login = await client.post("/api/users/login", json={"username": "owner", "password": PASSWORD})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_admins_cannot_be_banned(client, admin) -> None:
    admin_id, admin_headers = admin
    response = await client.put(f"/api/admin/users/{admin_id}/ban", headers=admin_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_profile_search_and_status_filter(client, owner, other_user, admin) -> None:
    _, headers = owner
    _, visitor_headers = other_user
    _, admin_headers = admin
    first = (await submit(client, headers))["profileId"]
    await submit(client, visitor_headers, presentAddressDistrict="Sylhet")
    await client.put(f"/api/admin/profiles/{first}/approve", headers=admin_headers)

    approved = body(await client.get("/api/admin/profiles/approved", headers=admin_headers))
    assert [p["profileId"] for p in approved["items"]] == [first]
    everything = body(await client.get("/api/admin/profiles", headers=admin_headers))
    assert everything["total"] == 2
    found = body(await client.get("/api/admin/profiles", params={"search": "sylhet"}, headers=admin_headers))
    assert found["total"] == 1
    assert found["items"][0]["data"]["presentAddressDistrict"] == "Sylhet"


@pytest.mark.asyncio
async def test_notifications_fire_once_per_effective_action(db) -> None:
    owner_id, _ = await make_user(db, "owner")
    admin_id, _ = await make_user(db, "chief")

    profile, _ = await ProfilesService.create_from_submission(db, owner_id, valid_form())
    received = []

    async def listener(event, payload):
        received.append(payload["profile_id"])

    async def broken(event, payload):
        raise RuntimeError("mailer down")

    notifier.subscribe(NotificationEvent.PROFILE_APPROVED, broken)
    notifier.subscribe(NotificationEvent.PROFILE_APPROVED, listener)

    approved, changed = await ModerationService.approve(db, profile.profile_id, admin_id)
    assert changed is True
    assert approved.status is ProfileStatus.APPROVED
    _, changed = await ModerationService.approve(db, profile.profile_id, admin_id)
    assert changed is False

    assert received == [profile.profile_id]
    log, total = await ModerationService.list_actions(db, 1, 10)
    assert total == 1
    assert log[0].action is ModerationActionType.APPROVE


@pytest.mark.asyncio
async def test_alumni_verification_request_cycle(client, owner, other_user, admin) -> None:
    owner_id, headers = owner
    visitor_id, visitor_headers = other_user
    _, admin_headers = admin

    me = body(await client.post("/api/users/me/verification-request", headers=headers))
    assert (me["verification_requested"], me["alumni_verified"]) == (True, False)
    again = await client.post("/api/users/me/verification-request", headers=headers)
    assert again.status_code == 409
    await client.post("/api/users/me/verification-request", headers=visitor_headers)

    response = await client.get("/api/admin/verification-requests", headers=headers)
    assert response.status_code == 403
    queue = body(await client.get("/api/admin/verification-requests", headers=admin_headers))
    assert sorted(u["id"] for u in queue["items"]) == sorted([owner_id, visitor_id])

    approved = body(
        await client.put(f"/api/admin/verification-requests/{owner_id}/approve", headers=admin_headers)
    )
    assert approved["message"] == "Verification request approved"
    assert (approved["user"]["verification_requested"], approved["user"]["alumni_verified"]) == (False, True)

    denied = body(
        await client.put(f"/api/admin/verification-requests/{visitor_id}/reject", headers=admin_headers)
    )
    assert (denied["user"]["verification_requested"], denied["user"]["alumni_verified"]) == (False, False)

    # Nothing pending any more
    queue = body(await client.get("/api/admin/verification-requests", headers=admin_headers))
    assert queue["total"] == 0
    response = await client.put(f"/api/admin/verification-requests/{visitor_id}/approve", headers=admin_headers)
    assert response.status_code == 409
    response = await client.put("/api/admin/verification-requests/9999/approve", headers=admin_headers)
    assert response.status_code == 404

    # Verified users cannot ask again; denied users can
    response = await client.post("/api/users/me/verification-request", headers=headers)
    assert response.status_code == 409
    response = await client.post("/api/users/me/verification-request", headers=visitor_headers)
    assert response.status_code == 200

    log = await _actions(client, admin_headers, target_type="user")
    assert sorted(entry["action"] for entry in log["items"]) == ["deny_verify", "verify"]


# ---------------------------------------------------------------------------
# Concurrent admin actions
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def sessions(tmp_path):
    """Session factory over a database file, so each session gets its own connection."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'moderation.db'}"
    file_engine = create_async_engine(url, **_get_engine_options(url))
    event.listen(file_engine.sync_engine, "connect", _configure_sqlite_connection)
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await file_engine.dispose()


async def _pending_profile(sessions):
    async with sessions() as session:
        owner_id, _ = await make_user(session, "owner")
        admin_id, _ = await make_user(session, "chief")
        profile, _ = await ProfilesService.create_from_submission(session, owner_id, valid_form())
    return owner_id, admin_id, profile.profile_id


async def _approve_in_own_session(sessions, profile_id, admin_id):
    async with sessions() as session:
        return await ModerationService.approve(session, profile_id, admin_id)


async def _delete_in_own_session(sessions, profile_id, admin_id):
    async with sessions() as session:
        return await ModerationService.delete_profile(session, profile_id, admin_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("approve_first", [True, False])
async def test_concurrent_approve_and_delete_leave_no_row(sessions, approve_first) -> None:
    owner_id, admin_id, profile_id = await _pending_profile(sessions)

    approve = _approve_in_own_session(sessions, profile_id, admin_id)
    remove = _delete_in_own_session(sessions, profile_id, admin_id)
    calls = (approve, remove) if approve_first else (remove, approve)
    outcomes = await asyncio.gather(*calls, return_exceptions=True)
    approved, removed = outcomes if approve_first else outcomes[::-1]

    assert removed == 0
    if isinstance(approved, BaseException):
        assert isinstance(approved, NotFoundError)
    else:
        assert approved[1] is True

    async with sessions() as session:
        assert await ProfilesService.find_by_profile_id(session, profile_id) is None
        owner = (await session.execute(select(User).where(User.id == owner_id))).scalar_one()
        assert owner.has_profile is False
        with pytest.raises(NotFoundError):
            await ModerationService.approve(session, profile_id, admin_id)


@pytest.mark.asyncio
async def test_concurrent_approvals_take_effect_once(sessions) -> None:
    _, admin_id, profile_id = await _pending_profile(sessions)
    received = []

    async def listener(kind, payload):
        received.append(payload["profile_id"])

    notifier.subscribe(NotificationEvent.PROFILE_APPROVED, listener)

    outcomes = await asyncio.gather(
        _approve_in_own_session(sessions, profile_id, admin_id),
        _approve_in_own_session(sessions, profile_id, admin_id),
    )

    assert sorted(changed for _, changed in outcomes) == [False, True]
    assert all(profile.status is ProfileStatus.APPROVED for profile, _ in outcomes)
    assert received == [profile_id]
    async with sessions() as session:
        log, total = await ModerationService.list_actions(session, 1, 10)
    assert total == 1
    assert log[0].action is ModerationActionType.APPROVE
