import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.base import BaseModel


class ReportReason(str, enum.Enum):
    FAKE_INFORMATION = "Fake information"
    INAPPROPRIATE_BEHAVIOR = "Inappropriate behavior"
    SPAM_SCAM = "Spam/Scam"
    HARASSMENT = "Harassment"
    INAPPROPRIATE_PHOTOS = "Inappropriate photos"
    OTHER = "Other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReportAction(str, enum.Enum):
    """Admin actions on a report and the status each one leads to"""

    INVESTIGATE = "investigate"
    RESOLVE = "resolve"
    DISMISS = "dismiss"

    @property
    def target_status(self) -> ReportStatus:
        return {
            ReportAction.INVESTIGATE: ReportStatus.UNDER_REVIEW,
            ReportAction.RESOLVE: ReportStatus.RESOLVED,
            ReportAction.DISMISS: ReportStatus.DISMISSED,
        }[self]


class ActionTaken(str, enum.Enum):
    NONE = "none"
    WARNING_SENT = "warning_sent"
    PROFILE_SUSPENDED = "profile_suspended"
    PROFILE_REMOVED = "profile_removed"
    DISMISSED = "dismissed"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Report(BaseModel):
    """
    A user's complaint about a biodata.
    Removed together with the biodata it points at.
    """

    __tablename__ = "reports"
    __table_args__ = (
        Index("idx_reports_status_priority", "status", "priority"),
    )

    reported_profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    reported_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    reason: Mapped[ReportReason] = mapped_column(
        SQLEnum(ReportReason, name="report_reason_enum", native_enum=False,
                values_callable=_values, length=32),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    status: Mapped[ReportStatus] = mapped_column(
        SQLEnum(ReportStatus, name="report_status_enum", native_enum=False,
                values_callable=_values),
        nullable=False,
        default=ReportStatus.PENDING,
    )

    priority: Mapped[ReportPriority] = mapped_column(
        SQLEnum(ReportPriority, name="report_priority_enum", native_enum=False,
                values_callable=_values),
        nullable=False,
        default=ReportPriority.MEDIUM,
    )

    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    action_taken: Mapped[ActionTaken] = mapped_column(
        SQLEnum(ActionTaken, name="report_action_taken_enum", native_enum=False,
                values_callable=_values),
        nullable=False,
        default=ActionTaken.NONE,
    )

    reviewed_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, default=None
    )

    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, profile={self.reported_profile_id}, status={self.status.value})>"
