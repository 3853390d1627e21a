"""
Reports Router - users report biodata, admins review the reports
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.core.pagination import Page, PageParams, build_paginated_response, page_params
from app.modules.users.auth import TokenData, get_current_user, require_admin
from .models import ReportPriority, ReportStatus
from .service import ReportsService
from .schemas import CreateReportDto, ReportActionDto, ReportActionResponse, ReportResponse

router = APIRouter(prefix="/reports", tags=["reports"])
admin_router = APIRouter(prefix="/admin/reports", tags=["moderation"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    dto: CreateReportDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """Report an approved biodata to the admins."""
    return await ReportsService.file(
        db, current_user.user_id, dto.profileId, dto.reason, dto.description, dto.priority
    )


@admin_router.get("", response_model=Page[ReportResponse])
async def list_reports(
    params: PageParams = Depends(page_params),
    status: Optional[ReportStatus] = Query(None, description="Filter by status"),
    priority: Optional[ReportPriority] = Query(None, description="Filter by priority"),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    items, total = await ReportsService.list_reports(
        db, params.page, params.limit, status=status, priority=priority
    )
    return build_paginated_response(
        [ReportResponse.model_validate(r) for r in items], total, params.page, params.limit
    )


@admin_router.put("/{report_id}/action", response_model=ReportActionResponse)
async def act_on_report(
    report_id: int,
    dto: ReportActionDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    """
    Investigate, resolve or dismiss a report.
    The report records who reviewed it and when.
    """
    report = await ReportsService.take_action(
        db, report_id, dto.action, current_user.user_id, dto.notes, dto.actionTaken
    )
    return ReportActionResponse(
        report=ReportResponse.model_validate(report),
        message=f"Report {dto.action.value} successfully",
    )
