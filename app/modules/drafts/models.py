"""
Draft Models - the in-progress biodata form of a single user
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.base import Base

BIODATA_STEPS = 4


class Draft(Base):
    """
    Draft model for saving an unsubmitted biodata form.

    One row per user (user_id is unique); every save overwrites draft_data
    and current_step. ``revision`` orders the owner's writes: a save carrying
    an older revision than the stored one is ignored.
    """
    __tablename__ = "drafts"
    __table_args__ = (
        CheckConstraint(
            f"current_step >= 1 AND current_step <= {BIODATA_STEPS}",
            name="current_step_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    draft_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    revision: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), server_default=func.now(), nullable=False
    )
