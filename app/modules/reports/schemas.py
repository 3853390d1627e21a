"""
Report DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from .models import ActionTaken, ReportAction, ReportPriority, ReportReason, ReportStatus


class CreateReportDto(BaseModel):
    """DTO for reporting a biodata"""

    profileId: str = Field(..., min_length=1, max_length=32)
    reason: ReportReason
    description: str = Field(..., min_length=1, max_length=500)
    priority: ReportPriority = ReportPriority.MEDIUM


class ReportActionDto(BaseModel):
    """DTO for an admin decision on a report"""

    action: ReportAction
    notes: Optional[str] = Field(None, max_length=2000)
    actionTaken: Optional[ActionTaken] = None


class ReportResponse(BaseModel):
    """Response model for Report entity"""

    id: int
    reported_profile_id: int
    reported_by: int
    reason: ReportReason
    description: str
    status: ReportStatus
    priority: ReportPriority
    admin_notes: Optional[str] = None
    action_taken: ActionTaken
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReportActionResponse(BaseModel):
    report: ReportResponse
    message: str
