"""
Drafts DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime

from .models import BIODATA_STEPS


class SaveDraftDto(BaseModel):
    """DTO for saving (upserting) the caller's draft"""
    currentStep: int = Field(..., ge=1, le=BIODATA_STEPS, description="Step the user is on")
    draftData: Dict[str, Any] = Field(..., description="Form state as a JSON object")
    revision: Optional[int] = Field(
        None,
        ge=0,
        description="Client ordering token; saves older than the stored revision are ignored",
    )


class DraftResponse(BaseModel):
    """Response model for draft"""
    currentStep: int = Field(validation_alias="current_step")
    draftData: Dict[str, Any] = Field(validation_alias="draft_data")
    revision: int
    updatedAt: datetime = Field(validation_alias="updated_at")

    class Config:
        from_attributes = True
        populate_by_name = True


class SaveDraftResponse(BaseModel):
    """Result of a save: ``applied`` is False when a newer revision was already stored"""
    applied: bool
    draft: DraftResponse


class DeleteDraftResponse(BaseModel):
    deleted: bool
