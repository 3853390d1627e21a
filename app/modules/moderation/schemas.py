"""
Moderation DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.modules.profiles.schemas import ProfileResponse
from app.modules.users.schemas import UserResponse
from .models import ModerationActionType, TargetType


class RejectProfileDto(BaseModel):
    """DTO for rejecting a biodata; the reason is shown to the owner"""

    reason: str = Field(..., max_length=1000)

    class Config:
        from_attributes = True


class ProfileModerationResponse(BaseModel):
    """``changed`` is False when the action was an idempotent repeat"""

    profile: ProfileResponse
    changed: bool
    message: str


class UserModerationResponse(BaseModel):
    user: UserResponse
    changed: bool
    message: str


class DeleteProfileResult(BaseModel):
    profileId: str
    deleted: bool
    reportsRemoved: int


class ModerationActionResponse(BaseModel):
    """Response model for an audit record"""

    id: int
    target_type: TargetType
    target_id: str
    action: ModerationActionType
    actor_id: Optional[int] = None
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
