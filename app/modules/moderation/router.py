"""
Moderation Router - admin review of biodata and user accounts.
All endpoints require the ADMIN role.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.core.notifications import LifecycleNotifier, get_notifier
from app.core.pagination import Page, PageParams, build_paginated_response, page_params
from app.modules.profiles.lifecycle import ProfileStatus
from app.modules.profiles.schemas import ProfileResponse
from app.modules.users.auth import TokenData, require_admin
from app.modules.users.schemas import UserResponse
from .models import ModerationActionType, TargetType
from .service import ModerationService
from .schemas import (
    DeleteProfileResult,
    ModerationActionResponse,
    ProfileModerationResponse,
    RejectProfileDto,
    UserModerationResponse,
)

router = APIRouter(prefix="/admin", tags=["moderation"])


async def _profile_page(db, params: PageParams, status: Optional[ProfileStatus]):
    items, total = await ModerationService.list_profiles(
        db, params.page, params.limit, status=status, search=params.search
    )
    return build_paginated_response(
        [ProfileResponse.from_profile(p) for p in items], total, params.page, params.limit
    )


@router.get("/profiles/pending", response_model=Page[ProfileResponse])
async def list_pending_profiles(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    """Review queue, oldest submission first"""
    return await _profile_page(db, params, ProfileStatus.PENDING_APPROVAL)


@router.get("/profiles/approved", response_model=Page[ProfileResponse])
async def list_approved_profiles(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    return await _profile_page(db, params, ProfileStatus.APPROVED)


@router.get("/profiles", response_model=Page[ProfileResponse])
async def list_all_profiles(
    params: PageParams = Depends(page_params),
    status: Optional[ProfileStatus] = Query(None),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    return await _profile_page(db, params, status)


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    profile = await ModerationService.get_profile(db, profile_id)
    return ProfileResponse.from_profile(profile)


@router.put("/profiles/{profile_id}/approve", response_model=ProfileModerationResponse)
async def approve_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    """Approve a biodata. Repeating the call is harmless."""
    profile, changed = await ModerationService.approve(db, profile_id, current_user.user_id, notifier)
    return ProfileModerationResponse(
        profile=ProfileResponse.from_profile(profile),
        changed=changed,
        message="Biodata approved" if changed else "Biodata was already approved",
    )


@router.put("/profiles/{profile_id}/reject", response_model=ProfileModerationResponse)
async def reject_profile(
    profile_id: str,
    dto: RejectProfileDto,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    """Reject a biodata. A non-empty reason is required."""
    profile, changed = await ModerationService.reject(
        db, profile_id, dto.reason, current_user.user_id, notifier
    )
    return ProfileModerationResponse(
        profile=ProfileResponse.from_profile(profile),
        changed=changed,
        message="Biodata rejected" if changed else "Biodata was already rejected for this reason",
    )


@router.delete("/profiles/{profile_id}", response_model=DeleteProfileResult)
async def delete_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    removed = await ModerationService.delete_profile(db, profile_id, current_user.user_id, notifier)
    return DeleteProfileResult(profileId=profile_id, deleted=True, reportsRemoved=removed)


async def _user_page(db, params: PageParams, **filters):
    items, total = await ModerationService.list_users(
        db, params.page, params.limit, search=params.search, **filters
    )
    return build_paginated_response(
        [UserResponse.model_validate(u) for u in items], total, params.page, params.limit
    )


@router.get("/users", response_model=Page[UserResponse])
async def list_users(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    return await _user_page(db, params)


@router.get("/users/restricted", response_model=Page[UserResponse])
async def list_restricted_users(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    return await _user_page(db, params, restricted=True)


@router.get("/users/banned", response_model=Page[UserResponse])
async def list_banned_users(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    return await _user_page(db, params, banned=True)


_USER_ACTION_MESSAGES = {
    ModerationActionType.RESTRICT: ("User restricted", "User was already restricted"),
    ModerationActionType.UNRESTRICT: ("User unrestricted", "User was not restricted"),
    ModerationActionType.BAN: ("User banned", "User was already banned"),
    ModerationActionType.UNBAN: ("User unbanned", "User was not banned"),
}


async def _user_action(db, user_id, action, admin, notifier) -> UserModerationResponse:
    user, changed = await ModerationService.set_user_flag(
        db, user_id, action, admin.user_id, notifier=notifier
    )
    done, unchanged = _USER_ACTION_MESSAGES[action]
    return UserModerationResponse(
        user=UserResponse.model_validate(user),
        changed=changed,
        message=done if changed else unchanged,
    )


@router.put("/users/{user_id}/restrict", response_model=UserModerationResponse)
async def restrict_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    """Hide the user's biodata from everyone else. Its status is kept."""
    return await _user_action(db, user_id, ModerationActionType.RESTRICT, current_user, notifier)


@router.put("/users/{user_id}/unrestrict", response_model=UserModerationResponse)
async def unrestrict_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    return await _user_action(db, user_id, ModerationActionType.UNRESTRICT, current_user, notifier)


@router.put("/users/{user_id}/ban", response_model=UserModerationResponse)
async def ban_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    """Ban the user: no login, no edits, biodata hidden."""
    return await _user_action(db, user_id, ModerationActionType.BAN, current_user, notifier)


@router.put("/users/{user_id}/unban", response_model=UserModerationResponse)
async def unban_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    return await _user_action(db, user_id, ModerationActionType.UNBAN, current_user, notifier)


@router.get("/verification-requests", response_model=Page[UserResponse])
async def list_verification_requests(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    """Users waiting for alumni verification"""
    items, total = await ModerationService.list_verification_requests(db, params.page, params.limit)
    return build_paginated_response(
        [UserResponse.model_validate(u) for u in items], total, params.page, params.limit
    )


@router.put("/verification-requests/{user_id}/approve", response_model=UserModerationResponse)
async def approve_verification(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    user = await ModerationService.review_verification(
        db, user_id, True, current_user.user_id, notifier
    )
    return UserModerationResponse(
        user=UserResponse.model_validate(user), changed=True, message="Verification request approved"
    )


@router.put("/verification-requests/{user_id}/reject", response_model=UserModerationResponse)
async def reject_verification(
    user_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    user = await ModerationService.review_verification(
        db, user_id, False, current_user.user_id, notifier
    )
    return UserModerationResponse(
        user=UserResponse.model_validate(user), changed=True, message="Verification request rejected"
    )


@router.get("/actions", response_model=Page[ModerationActionResponse])
async def list_actions(
    params: PageParams = Depends(page_params),
    target_type: Optional[TargetType] = Query(None),
    target_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    """Moderation audit log, newest first"""
    items, total = await ModerationService.list_actions(
        db, params.page, params.limit, target_type=target_type, target_id=target_id
    )
    return build_paginated_response(
        [ModerationActionResponse.model_validate(a) for a in items], total, params.page, params.limit
    )
