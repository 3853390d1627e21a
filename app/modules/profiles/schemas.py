"""
Profiles DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, ConfigDict, Field, create_model
from typing import Optional, Any, Dict, List
from datetime import datetime

from .lifecycle import ProfileStatus
from .models import Profile, CONTACT_COLUMNS
from .validation import STEP_MODELS


def _form_fields() -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for model in STEP_MODELS.values():
        for name, info in model.model_fields.items():
            fields[name] = (Optional[Any], Field(None, title=info.title, description=model.title))
    return fields


# Request body for submissions and edits. Every form field is documented but
# optional here: completeness is checked per step by the service, which
# answers with field messages and a step summary instead of a bare 422.
# Extra keys carry the per-sibling fields (brother1Occupation, ...).
BiodataPayload = create_model(
    "BiodataPayload",
    __config__=ConfigDict(extra="allow"),
    **_form_fields(),
)


class ProfileResponse(BaseModel):
    """Owner / admin view of a biodata, including moderation data"""

    profileId: str
    userId: int
    status: ProfileStatus
    rejectionReason: Optional[str] = Field(
        None, description="Active reason; only set while the biodata is rejected"
    )
    previousRejectionReason: Optional[str] = Field(
        None, description="Reason of an earlier rejection that has not been cleared by approval"
    )
    editCount: int
    editedFields: List[str]
    lastEditDate: Optional[datetime] = None
    viewCount: int
    data: Dict[str, Any]
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        active = profile.is_rejection_active
        return cls(
            profileId=profile.profile_id,
            userId=profile.user_id,
            status=profile.status,
            rejectionReason=profile.rejection_reason if active else None,
            previousRejectionReason=None if active else profile.rejection_reason,
            editCount=profile.edit_count,
            editedFields=list(profile.edited_fields or []),
            lastEditDate=profile.last_edit_date,
            viewCount=profile.view_count,
            data=profile.form_data(),
            createdAt=profile.created_at,
            updatedAt=profile.updated_at,
        )


class PublicProfileResponse(BaseModel):
    """What other users see; contact details are never included"""

    profileId: str
    gender: str
    age: Optional[int] = None
    religion: Optional[str] = None
    maritalStatus: Optional[str] = None
    presentAddressDistrict: Optional[str] = None
    data: Dict[str, Any]
    createdAt: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> "PublicProfileResponse":
        data = {
            key: value
            for key, value in (profile.biodata or {}).items()
            if key not in CONTACT_COLUMNS
        }
        return cls(
            profileId=profile.profile_id,
            gender=profile.gender,
            age=profile.age,
            religion=profile.religion,
            maritalStatus=profile.marital_status,
            presentAddressDistrict=profile.present_address_district,
            data=data,
            createdAt=profile.created_at,
        )


class SubmitDraftResponse(BaseModel):
    profile: ProfileResponse
    draftDeleted: bool


class UpdateProfileResponse(BaseModel):
    profile: ProfileResponse
    changedFields: List[str]
    requiresReview: bool
    message: str


class DeleteProfileResponse(BaseModel):
    profileId: str
    deleted: bool
