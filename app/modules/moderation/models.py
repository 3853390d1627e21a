import enum
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.base import BaseModel


class TargetType(str, enum.Enum):
    PROFILE = "profile"
    USER = "user"
    REPORT = "report"
    TRANSACTION = "transaction"


class ModerationActionType(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"
    RESTRICT = "restrict"
    UNRESTRICT = "unrestrict"
    BAN = "ban"
    UNBAN = "unban"
    VERIFY = "verify"
    DENY_VERIFICATION = "deny_verify"
    INVESTIGATE = "investigate"
    RESOLVE = "resolve"
    DISMISS = "dismiss"


class ModerationAction(BaseModel):
    """
    Audit record of an admin action that changed something.
    Idempotent repeats and failed actions leave no record.

    ``target_id`` is the public identifier of the target (profile_id for a
    biodata, the numeric id otherwise), kept as text so records outlive the
    rows they describe.
    """

    __tablename__ = "moderation_actions"
    __table_args__ = (
        Index("idx_moderation_actions_target", "target_type", "target_id"),
    )

    target_type: Mapped[TargetType] = mapped_column(
        SQLEnum(TargetType, name="moderation_target_enum", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    target_id: Mapped[str] = mapped_column(String(64), nullable=False)

    action: Mapped[ModerationActionType] = mapped_column(
        SQLEnum(ModerationActionType, name="moderation_action_enum", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    actor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    def __repr__(self) -> str:
        return (
            f"<ModerationAction({self.action.value} {self.target_type.value}:{self.target_id}"
            f" by {self.actor_id})>"
        )
