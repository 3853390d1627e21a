"""
Profiles Router - submission, owner edits and the public read path
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.core.notifications import LifecycleNotifier, get_notifier
from app.core.pagination import Page, PageParams, build_paginated_response, page_params
from app.modules.users.auth import TokenData, get_current_user, get_optional_user
from .service import ProfilesService
from .schemas import (
    BiodataPayload,
    DeleteProfileResponse,
    ProfileResponse,
    PublicProfileResponse,
    SubmitDraftResponse,
    UpdateProfileResponse,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _edit_message(requires_review: bool) -> str:
    if requires_review:
        return "Biodata updated. Your changes are now under admin review."
    return "Biodata updated."


@router.post("", response_model=SubmitDraftResponse, status_code=status.HTTP_201_CREATED)
async def submit_profile(
    form: BiodataPayload,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(get_current_user)
):
    """Submit a complete biodata for review. Clears the caller's draft."""
    profile, draft_deleted = await ProfilesService.create_from_submission(
        db, current_user.user_id, form.model_dump(exclude_unset=True), notifier
    )
    return SubmitDraftResponse(profile=ProfileResponse.from_profile(profile), draftDeleted=draft_deleted)


@router.post("/submit-draft", response_model=SubmitDraftResponse, status_code=status.HTTP_201_CREATED)
async def submit_draft(
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(get_current_user)
):
    """Submit the caller's stored draft for review."""
    profile, draft_deleted = await ProfilesService.promote_draft(db, current_user.user_id, notifier)
    return SubmitDraftResponse(profile=ProfileResponse.from_profile(profile), draftDeleted=draft_deleted)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """The caller's biodata with status and rejection details."""
    profile = await ProfilesService.get_mine(db, current_user.user_id)
    return ProfileResponse.from_profile(profile)


@router.put("/me", response_model=UpdateProfileResponse)
async def update_my_profile(
    changes: BiodataPayload,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(get_current_user)
):
    """Edit the caller's biodata; sends it back to review."""
    profile, changed, requires_review = await ProfilesService.update_own(
        db, current_user.user_id, changes.model_dump(exclude_unset=True), notifier=notifier
    )
    return UpdateProfileResponse(
        profile=ProfileResponse.from_profile(profile),
        changedFields=changed,
        requiresReview=requires_review,
        message=_edit_message(requires_review),
    )


@router.delete("/me", response_model=DeleteProfileResponse)
async def delete_my_profile(
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(get_current_user)
):
    profile_id = await ProfilesService.delete_own(db, current_user.user_id, notifier)
    return DeleteProfileResponse(profileId=profile_id, deleted=True)


@router.get("", response_model=Page[PublicProfileResponse])
async def list_profiles(
    params: PageParams = Depends(page_params),
    gender: Optional[str] = Query(None, description="Male or Female"),
    db: AsyncSession = Depends(get_db_util),
    viewer: Optional[TokenData] = Depends(get_optional_user)
):
    """Approved biodata of users in good standing."""
    items, total = await ProfilesService.list_public(
        db, params.page, params.limit, gender, viewer.user_id if viewer else None
    )
    return build_paginated_response(
        [PublicProfileResponse.from_profile(p) for p in items], total, params.page, params.limit
    )


@router.get("/{profile_id}", response_model=PublicProfileResponse)
async def get_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db_util),
    viewer: Optional[TokenData] = Depends(get_optional_user)
):
    profile = await ProfilesService.get_public(db, profile_id, viewer.user_id if viewer else None)
    return PublicProfileResponse.from_profile(profile)


@router.put("/{profile_id}", response_model=UpdateProfileResponse)
async def update_profile(
    profile_id: str,
    changes: BiodataPayload,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(get_current_user)
):
    """Edit a biodata by its public id. Only its owner may."""
    profile, changed, requires_review = await ProfilesService.update_own(
        db, current_user.user_id, changes.model_dump(exclude_unset=True), profile_id=profile_id, notifier=notifier
    )
    return UpdateProfileResponse(
        profile=ProfileResponse.from_profile(profile),
        changedFields=changed,
        requiresReview=requires_review,
        message=_edit_message(requires_review),
    )
