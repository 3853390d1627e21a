"""
ProfilesService - promotion of drafts into biodata and the owner's side of
the biodata lifecycle.

Status changes go through the lifecycle table and are written as a single
conditional UPDATE, so an owner edit racing an admin action never leaves a
half-applied row. Services commit before publishing notifications, so
listeners only ever hear about durable changes.
"""

import logging
import random
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import config
from app.core.db.base import utcnow
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.notifications import LifecycleNotifier, NotificationEvent, notifier as default_notifier
from app.core.pagination import paginate_query
from app.modules.drafts.service import DraftsService
from app.modules.reports.models import Report
from app.modules.users.models import User
from app.modules.users.service import UsersService
from .lifecycle import LifecycleEvent, ProfileStatus, transition_for
from .models import CONTACT_COLUMNS, DECLARATION_COLUMNS, INDEXED_COLUMNS, Profile
from .validation import as_int, summarize_errors, validate_profile_data

logger = logging.getLogger(__name__)

PROFILE_ID_DIGITS = 4
PROFILE_ID_ATTEMPTS = 20


def split_form(form: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Map a complete form onto Profile column values.

    Declarations and contact details get their own columns; everything else
    goes into the biodata document, with the filterable fields copied out.
    """
    values: Dict[str, Any] = {
        "biodata": {
            key: value
            for key, value in form.items()
            if key not in DECLARATION_COLUMNS and key not in CONTACT_COLUMNS
        }
    }
    for key, column in DECLARATION_COLUMNS.items():
        values[column] = form.get(key)
    for key, column in CONTACT_COLUMNS.items():
        values[column] = str(form.get(key) or "").strip()
    for key, column in INDEXED_COLUMNS.items():
        value = form.get(key)
        values[column] = as_int(value) if column == "age" else value
    return values


def _candidate_profile_id(attempt: int) -> str:
    # Widen the number once the short range keeps colliding
    digits = PROFILE_ID_DIGITS + attempt // 10
    return f"{config.profile_id_prefix}{random.randrange(10 ** digits):0{digits}d}"


class ProfilesService:
    """
    Profiles service.
    All methods use async/await and a caller-provided session.
    """

    @staticmethod
    async def find_by_user(db: AsyncSession, user_id: int) -> Optional[Profile]:
        result = await db.execute(
            select(Profile)
            .where(Profile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def find_by_profile_id(db: AsyncSession, profile_id: str) -> Optional[Profile]:
        result = await db.execute(
            select(Profile)
            .where(Profile.profile_id == profile_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_mine(db: AsyncSession, user_id: int) -> Profile:
        """
        Raises:
            NotFoundError: If the user has not submitted a biodata
        """
        profile = await ProfilesService.find_by_user(db, user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    @staticmethod
    async def _generate_profile_id(db: AsyncSession) -> str:
        for attempt in range(PROFILE_ID_ATTEMPTS):
            candidate = _candidate_profile_id(attempt)
            taken = await db.scalar(select(Profile.id).where(Profile.profile_id == candidate))
            if taken is None:
                return candidate
        raise ConflictError("Could not allocate a profile id, please retry")

    @staticmethod
    async def _promote(
        db: AsyncSession,
        user_id: int,
        form: Mapping[str, Any],
        notifier: LifecycleNotifier,
    ) -> Tuple[Profile, bool]:
        user = await UsersService.find_one(db, user_id)
        if user.is_banned:
            raise ForbiddenError("Your account has been banned")
        if await ProfilesService.find_by_user(db, user_id) is not None:
            raise ConflictError("Profile already exists")

        if not isinstance(form, Mapping):
            raise ValidationError("Biodata must be an object")
        errors = validate_profile_data(form)
        if errors:
            # Nothing written; the draft stays as it is
            raise ValidationError(summarize_errors(errors, form), errors)

        transition = transition_for(None, LifecycleEvent.SUBMIT)
        profile = Profile(
            profile_id=await ProfilesService._generate_profile_id(db),
            user_id=user_id,
            status=transition.target,
            edit_count=0,
            edited_fields=[],
            **split_form(form),
        )
        db.add(profile)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("Profile already exists") from exc

        await db.execute(update(User).where(User.id == user_id).values(has_profile=True))
        draft_deleted = await DraftsService.delete_draft(db, user_id)
        await db.commit()
        await db.refresh(profile)

        logger.info(
            "User %s submitted biodata %s (draft deleted: %s)",
            user_id, profile.profile_id, draft_deleted,
        )
        await notifier.publish(
            NotificationEvent.PROFILE_SUBMITTED,
            {"profile_id": profile.profile_id, "user_id": user_id},
        )
        return profile, draft_deleted

    @staticmethod
    async def create_from_submission(
        db: AsyncSession,
        user_id: int,
        form: Mapping[str, Any],
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[Profile, bool]:
        """
        Validate a complete form and create the biodata in pending_approval.
        The user's draft is deleted in the same transaction.

        Returns:
            (profile, draft_deleted)

        Raises:
            ValidationError: With field-level errors if any step is incomplete
            ConflictError: If the user already has a biodata
        """
        return await ProfilesService._promote(db, user_id, form, notifier)

    @staticmethod
    async def promote_draft(
        db: AsyncSession,
        user_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[Profile, bool]:
        """Submit the user's stored draft as their biodata."""
        draft = await DraftsService.get_draft(db, user_id)
        if draft is None:
            raise NotFoundError("Draft", user_id)
        return await ProfilesService._promote(db, user_id, draft.draft_data or {}, notifier)

    @staticmethod
    async def update_own(
        db: AsyncSession,
        user_id: int,
        changes: Mapping[str, Any],
        profile_id: Optional[str] = None,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[Profile, List[str], bool]:
        """
        Apply an owner edit and send the biodata back to review.

        Declaration fields in ``changes`` are ignored. The merged form must
        still pass full validation. Status becomes pending_approval,
        edit_count grows by one and any rejection reason is kept.

        Returns:
            (profile, changed_fields, requires_review)

        Raises:
            NotFoundError: If the user has no biodata (or ``profile_id`` does not exist)
            ForbiddenError: If ``profile_id`` belongs to someone else, or the user is banned
            ValidationError: If the merged form is incomplete
            ConflictError: If another edit landed between read and write
        """
        profile = await ProfilesService.find_by_user(db, user_id)
        if profile_id is not None and (profile is None or profile.profile_id != profile_id):
            if await ProfilesService.find_by_profile_id(db, profile_id) is None:
                raise NotFoundError("Profile", profile_id)
            raise ForbiddenError("You can only edit your own biodata")
        if profile is None:
            raise NotFoundError("Profile", user_id)

        user = await UsersService.find_one(db, user_id)
        if user.is_banned:
            raise ForbiddenError("Your account has been banned")

        if not isinstance(changes, Mapping):
            raise ValidationError("Biodata must be an object")
        ignored = [key for key in changes if key in DECLARATION_COLUMNS]
        if ignored:
            logger.info("Ignoring declaration fields %s in edit of %s", ignored, profile.profile_id)
        changes = {key: value for key, value in changes.items() if key not in DECLARATION_COLUMNS}

        current = profile.form_data()
        merged = {**current, **changes}
        errors = validate_profile_data(merged)
        if errors:
            raise ValidationError(summarize_errors(errors, merged), errors)

        changed = [key for key, value in changes.items() if current.get(key) != value]
        previous_status = profile.status
        transition = transition_for(previous_status, LifecycleEvent.OWNER_EDIT)

        edited_fields = list(profile.edited_fields or [])
        edited_fields.extend(key for key in changed if key not in edited_fields)

        values = split_form(merged)
        for column in DECLARATION_COLUMNS.values():
            values.pop(column)

        result = await db.execute(
            update(Profile)
            .where(Profile.id == profile.id, Profile.edit_count == profile.edit_count)
            .values(
                status=transition.target,
                edit_count=Profile.edit_count + 1,
                last_edit_date=utcnow(),
                edited_fields=edited_fields,
                **values,
            )
        )
        if result.rowcount == 0:
            if await ProfilesService.find_by_profile_id(db, profile.profile_id) is None:
                raise NotFoundError("Profile", profile.profile_id)
            raise ConflictError("Biodata was changed by another request, reload and try again")

        await db.commit()
        profile = await ProfilesService.find_by_profile_id(db, profile.profile_id)
        requires_review = previous_status != ProfileStatus.PENDING_APPROVAL

        logger.info(
            "Owner edit of %s: %s -> %s, edit #%s, changed %s",
            profile.profile_id, previous_status.value, profile.status.value,
            profile.edit_count, changed,
        )
        await notifier.publish(
            NotificationEvent.PROFILE_EDITED,
            {
                "profile_id": profile.profile_id,
                "user_id": user_id,
                "previous_status": previous_status.value,
                "changed_fields": changed,
            },
        )
        return profile, changed, requires_review

    @staticmethod
    async def remove(db: AsyncSession, profile: Profile) -> int:
        """
        Delete a biodata with its reports and clear the owner's flag.
        Does not commit.

        Returns:
            Number of reports removed

        Raises:
            NotFoundError: If the row is already gone
        """
        transition_for(profile.status, LifecycleEvent.DELETE)
        reports = await db.execute(delete(Report).where(Report.reported_profile_id == profile.id))
        result = await db.execute(delete(Profile).where(Profile.id == profile.id))
        if result.rowcount == 0:
            raise NotFoundError("Profile", profile.profile_id)
        await db.execute(
            update(User).where(User.id == profile.user_id).values(has_profile=False)
        )
        return reports.rowcount

    @staticmethod
    async def delete_own(
        db: AsyncSession,
        user_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> str:
        """
        Delete the caller's biodata. Banned users may not.

        Returns:
            The profile_id that was removed
        """
        profile = await ProfilesService.get_mine(db, user_id)
        user = await UsersService.find_one(db, user_id)
        if user.is_banned:
            raise ForbiddenError("Your account has been banned")

        profile_id = profile.profile_id
        removed_reports = await ProfilesService.remove(db, profile)
        await db.commit()

        logger.info("User %s deleted biodata %s (%s reports removed)", user_id, profile_id, removed_reports)
        await notifier.publish(
            NotificationEvent.PROFILE_DELETED,
            {"profile_id": profile_id, "user_id": user_id, "by": "owner"},
        )
        return profile_id

    @staticmethod
    def _visible():
        """Approved biodata whose owner is neither restricted nor banned."""
        return (
            select(Profile)
            .join(User, User.id == Profile.user_id)
            .where(
                Profile.status == ProfileStatus.APPROVED,
                User.is_restricted.is_(False),
                User.is_banned.is_(False),
                User.deleted_at.is_(None),
            )
        )

    @staticmethod
    async def list_public(
        db: AsyncSession,
        page: int,
        page_size: int,
        gender: Optional[str] = None,
        viewer_id: Optional[int] = None,
    ) -> Tuple[List[Profile], int]:
        """
        Paginated public listing. Restricted or banned viewers see nothing.
        """
        if viewer_id is not None:
            viewer = await db.get(User, viewer_id)
            if viewer is not None and (viewer.is_restricted or viewer.is_banned):
                return [], 0

        query = ProfilesService._visible()
        if gender:
            query = query.where(Profile.gender == gender)
        query = query.order_by(Profile.created_at.desc(), Profile.id.desc())
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def get_public(
        db: AsyncSession, profile_id: str, viewer_id: Optional[int] = None
    ) -> Profile:
        """
        Look up a visible biodata and count the view.

        Raises:
            NotFoundError: If missing, not approved, or its owner is restricted/banned
        """
        result = await db.execute(
            ProfilesService._visible().where(Profile.profile_id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Profile", profile_id)

        if viewer_id != profile.user_id:
            await db.execute(
                update(Profile)
                .where(Profile.id == profile.id)
                .values(view_count=Profile.view_count + 1)
            )
            await db.refresh(profile)
        return profile
