"""
ReportsService - complaints filed against biodata and their admin review.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.base import utcnow
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.pagination import paginate_query
from app.modules.moderation.models import ModerationActionType, TargetType
from app.modules.moderation.service import ModerationService
from app.modules.profiles.lifecycle import ProfileStatus
from app.modules.profiles.service import ProfilesService
from app.modules.users.models import User
from .models import ActionTaken, Report, ReportAction, ReportPriority, ReportReason, ReportStatus

logger = logging.getLogger(__name__)

OPEN_STATUSES = (ReportStatus.PENDING, ReportStatus.UNDER_REVIEW)


class ReportsService:

    @staticmethod
    async def file(
        db: AsyncSession,
        reporter_id: int,
        profile_id: str,
        reason: ReportReason,
        description: str,
        priority: ReportPriority = ReportPriority.MEDIUM,
    ) -> Report:
        """
        File a report against an approved biodata.

        Raises:
            NotFoundError: If the biodata does not exist or is not approved
            ForbiddenError: If the reporter owns the biodata or is banned
            ConflictError: If the reporter already has an open report on it
        """
        reporter = await db.get(User, reporter_id)
        if reporter is None or reporter.is_banned:
            raise ForbiddenError("You cannot file reports")

        profile = await ProfilesService.find_by_profile_id(db, profile_id)
        if profile is None or profile.status != ProfileStatus.APPROVED:
            raise NotFoundError("Profile", profile_id)
        if profile.user_id == reporter_id:
            raise ForbiddenError("You cannot report your own biodata")

        existing = await db.execute(
            select(Report.id).where(
                Report.reported_profile_id == profile.id,
                Report.reported_by == reporter_id,
                Report.status.in_(OPEN_STATUSES),
            )
        )
        if existing.first() is not None:
            raise ConflictError("You have already reported this biodata")

        report = Report(
            reported_profile_id=profile.id,
            reported_by=reporter_id,
            reason=reason,
            description=description.strip(),
            priority=priority,
        )
        db.add(report)
        await db.commit()
        await db.refresh(report)

        logger.info("User %s reported biodata %s (%s)", reporter_id, profile_id, reason.value)
        return report

    @staticmethod
    async def get(db: AsyncSession, report_id: int) -> Report:
        report = await db.get(Report, report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        return report

    @staticmethod
    async def list_reports(
        db: AsyncSession,
        page: int,
        page_size: int,
        status: Optional[ReportStatus] = None,
        priority: Optional[ReportPriority] = None,
    ) -> Tuple[List[Report], int]:
        query = select(Report)
        if status is not None:
            query = query.where(Report.status == status)
        if priority is not None:
            query = query.where(Report.priority == priority)
        query = query.order_by(Report.created_at.desc(), Report.id.desc())
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def take_action(
        db: AsyncSession,
        report_id: int,
        action: ReportAction,
        actor_id: int,
        notes: Optional[str] = None,
        action_taken: Optional[ActionTaken] = None,
    ) -> Report:
        """
        Move a report to the status its action leads to.
        Notes and action_taken keep their previous values when not given.
        """
        report = await ReportsService.get(db, report_id)
        report.status = action.target_status
        if notes:
            report.admin_notes = notes
        if action_taken is not None:
            report.action_taken = action_taken
        report.reviewed_by = actor_id
        report.reviewed_at = utcnow()

        await ModerationService.record(
            db, TargetType.REPORT, report_id, ModerationActionType(action.value), actor_id, notes
        )
        await db.commit()
        await db.refresh(report)

        logger.info("Admin %s: %s report %s", actor_id, action.value, report_id)
        return report
