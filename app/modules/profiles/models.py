"""
Profile Models - a submitted biodata under moderation
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.base import BaseModel
from .lifecycle import ProfileStatus


# Form keys that live in dedicated columns instead of the biodata document.
# Declarations are written once; contact details are never shown publicly.
DECLARATION_COLUMNS = {
    "guardianKnowledge": "guardian_knowledge",
    "informationTruthfulness": "information_truthfulness",
    "falseInformationAgreement": "false_information_agreement",
}
CONTACT_COLUMNS = {
    "contactInformation": "contact_information",
    "personalContactInfo": "personal_contact_info",
}
# Copied out of the biodata document so listings can filter on them
INDEXED_COLUMNS = {
    "gender": "gender",
    "age": "age",
    "religion": "religion",
    "maritalStatus": "marital_status",
    "presentAddressDistrict": "present_address_district",
    "permanentAddressDistrict": "permanent_address_district",
}


class Profile(BaseModel):
    """
    Profile model.
    Extends BaseModel which provides: id, created_at, updated_at, deleted_at

    ``biodata`` holds the form answers (including per-sibling dynamic
    fields) except declarations and contact details, which have columns.
    ``rejection_reason`` is the active reason only while status is
    rejected; otherwise it is the previous reason kept for the owner.
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(
            "status != 'rejected' OR "
            "(rejection_reason IS NOT NULL AND length(trim(rejection_reason)) > 0)",
            name="rejected_has_reason",
        ),
        CheckConstraint("edit_count >= 0", name="edit_count_non_negative"),
        Index("idx_profiles_status_created", "status", "created_at"),
        Index("idx_profiles_status_gender", "status", "gender"),
    )

    profile_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    status: Mapped[ProfileStatus] = mapped_column(
        SQLEnum(
            ProfileStatus,
            name="profile_status_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ProfileStatus.PENDING_APPROVAL,
        index=True,
    )

    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    edit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    edited_fields: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    last_edit_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True, default=None
    )

    gender: Mapped[str] = mapped_column(String(16), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    religion: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    marital_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    present_address_district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    permanent_address_district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    guardian_knowledge: Mapped[str] = mapped_column(String(8), nullable=False)
    information_truthfulness: Mapped[str] = mapped_column(String(8), nullable=False)
    false_information_agreement: Mapped[str] = mapped_column(String(8), nullable=False)

    contact_information: Mapped[str] = mapped_column(Text, nullable=False, default="")
    personal_contact_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    biodata: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def is_rejection_active(self) -> bool:
        return self.status == ProfileStatus.REJECTED and bool(self.rejection_reason)

    def declarations(self) -> Dict[str, str]:
        return {key: getattr(self, column) for key, column in DECLARATION_COLUMNS.items()}

    def form_data(self) -> Dict[str, Any]:
        """The complete form as the owner filled it."""
        data = dict(self.biodata or {})
        data.update(self.declarations())
        for key, column in CONTACT_COLUMNS.items():
            data[key] = getattr(self, column)
        return data

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, profile_id='{self.profile_id}', status={self.status.value})>"
