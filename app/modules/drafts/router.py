"""
Drafts Router - API endpoints for the caller's in-progress biodata form
"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.modules.users.auth import get_current_user, TokenData
from .service import DraftsService
from .schemas import DeleteDraftResponse, DraftResponse, SaveDraftDto, SaveDraftResponse

router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.get("/me", response_model=Optional[DraftResponse])
async def get_draft(
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Get the caller's draft. Returns null when there is none.
    """
    return await DraftsService.get_draft(db, current_user.user_id)


@router.put("/me", response_model=SaveDraftResponse)
async def save_draft(
    dto: SaveDraftDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Create or overwrite the caller's draft (last write wins).
    """
    draft, applied = await DraftsService.save_draft(
        db, current_user.user_id, dto.currentStep, dto.draftData, dto.revision
    )
    return SaveDraftResponse(applied=applied, draft=DraftResponse.model_validate(draft))


@router.delete("/me", response_model=DeleteDraftResponse)
async def delete_draft(
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Delete the caller's draft. Deleting a missing draft succeeds.
    """
    deleted = await DraftsService.delete_draft(db, current_user.user_id)
    return DeleteDraftResponse(deleted=deleted)
