"""
ModerationService - admin transitions on biodata and user accounts.

Every transition is one conditional UPDATE (or DELETE) keyed by profile_id or
user_id whose WHERE clause encodes the legal source states. When it touches
no row the record is read again to tell an idempotent repeat from a missing
record, so an approve that loses a race with a delete reports NotFound and
never recreates the row. Failures are raised to the admin; nothing here
degrades silently.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.notifications import LifecycleNotifier, NotificationEvent, notifier as default_notifier
from app.core.pagination import paginate_query
from app.modules.profiles.lifecycle import (
    LifecycleEvent,
    ProfileStatus,
    allowed_sources,
    is_noop,
)
from app.modules.profiles.models import Profile
from app.modules.profiles.service import ProfilesService
from app.modules.users.models import Role, User
from .models import ModerationAction, ModerationActionType, TargetType

logger = logging.getLogger(__name__)


# (flag column, value, audit action, notification) per user action
USER_FLAG_ACTIONS = {
    ModerationActionType.RESTRICT: ("is_restricted", True, NotificationEvent.USER_RESTRICTED),
    ModerationActionType.UNRESTRICT: ("is_restricted", False, NotificationEvent.USER_UNRESTRICTED),
    ModerationActionType.BAN: ("is_banned", True, NotificationEvent.USER_BANNED),
    ModerationActionType.UNBAN: ("is_banned", False, NotificationEvent.USER_UNBANNED),
}


class ModerationService:
    """
    Moderation service.
    Mutating methods commit, then publish; callers pass the acting admin.
    """

    @staticmethod
    async def record(
        db: AsyncSession,
        target_type: TargetType,
        target_id,
        action: ModerationActionType,
        actor_id: Optional[int],
        reason: Optional[str] = None,
    ) -> ModerationAction:
        """Add an audit record to the current transaction."""
        entry = ModerationAction(
            target_type=target_type,
            target_id=str(target_id),
            action=action,
            actor_id=actor_id,
            reason=reason,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def get_profile(db: AsyncSession, profile_id: str) -> Profile:
        profile = await ProfilesService.find_by_profile_id(db, profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)
        return profile

    @staticmethod
    async def approve(
        db: AsyncSession,
        profile_id: str,
        actor_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[Profile, bool]:
        """
        Approve a biodata and clear any rejection reason.
        Approving an approved biodata succeeds without side effects.

        Returns:
            (profile, changed)

        Raises:
            NotFoundError: If the biodata does not exist (or was just deleted)
        """
        result = await db.execute(
            update(Profile)
            .where(
                Profile.profile_id == profile_id,
                Profile.status.in_(allowed_sources(LifecycleEvent.APPROVE)),
            )
            .values(status=ProfileStatus.APPROVED, rejection_reason=None)
        )
        if result.rowcount == 0:
            profile = await ModerationService.get_profile(db, profile_id)
            if is_noop(profile.status, LifecycleEvent.APPROVE):
                logger.info("Biodata %s already approved, nothing to do", profile_id)
                return profile, False
            raise ConflictError(f"Biodata {profile_id} cannot be approved from {profile.status.value}")

        await ModerationService.record(
            db, TargetType.PROFILE, profile_id, ModerationActionType.APPROVE, actor_id
        )
        await db.commit()
        profile = await ModerationService.get_profile(db, profile_id)

        logger.info("Admin %s approved biodata %s", actor_id, profile_id)
        await notifier.publish(
            NotificationEvent.PROFILE_APPROVED,
            {"profile_id": profile_id, "user_id": profile.user_id, "actor_id": actor_id},
        )
        return profile, True

    @staticmethod
    async def reject(
        db: AsyncSession,
        profile_id: str,
        reason: str,
        actor_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[Profile, bool]:
        """
        Reject a biodata with a reason shown to its owner.

        Rejecting a rejected biodata with the same reason changes nothing; a
        different reason replaces the stored one.

        Returns:
            (profile, changed)

        Raises:
            ValidationError: If the reason is empty or whitespace (checked first)
            NotFoundError: If the biodata does not exist
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required", {"reason": "Rejection reason is required"})

        result = await db.execute(
            update(Profile)
            .where(
                Profile.profile_id == profile_id,
                Profile.status.in_(allowed_sources(LifecycleEvent.REJECT)),
                or_(
                    Profile.status != ProfileStatus.REJECTED,
                    Profile.rejection_reason.is_(None),
                    Profile.rejection_reason != reason,
                ),
            )
            .values(status=ProfileStatus.REJECTED, rejection_reason=reason)
        )
        if result.rowcount == 0:
            profile = await ModerationService.get_profile(db, profile_id)
            if profile.status == ProfileStatus.REJECTED and profile.rejection_reason == reason:
                logger.info("Biodata %s already rejected for the same reason", profile_id)
                return profile, False
            raise ConflictError(f"Biodata {profile_id} cannot be rejected from {profile.status.value}")

        await ModerationService.record(
            db, TargetType.PROFILE, profile_id, ModerationActionType.REJECT, actor_id, reason
        )
        await db.commit()
        profile = await ModerationService.get_profile(db, profile_id)

        logger.info("Admin %s rejected biodata %s: %s", actor_id, profile_id, reason)
        await notifier.publish(
            NotificationEvent.PROFILE_REJECTED,
            {
                "profile_id": profile_id,
                "user_id": profile.user_id,
                "actor_id": actor_id,
                "reason": reason,
            },
        )
        return profile, True

    @staticmethod
    async def delete_profile(
        db: AsyncSession,
        profile_id: str,
        actor_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> int:
        """
        Delete a biodata with its reports.

        Returns:
            Number of reports removed

        Raises:
            NotFoundError: If the biodata does not exist
        """
        profile = await ModerationService.get_profile(db, profile_id)
        owner_id = profile.user_id
        removed_reports = await ProfilesService.remove(db, profile)
        await ModerationService.record(
            db, TargetType.PROFILE, profile_id, ModerationActionType.DELETE, actor_id
        )
        await db.commit()

        logger.info(
            "Admin %s deleted biodata %s (%s reports removed)", actor_id, profile_id, removed_reports
        )
        await notifier.publish(
            NotificationEvent.PROFILE_DELETED,
            {"profile_id": profile_id, "user_id": owner_id, "actor_id": actor_id, "by": "admin"},
        )
        return removed_reports

    @staticmethod
    async def _get_user(db: AsyncSession, user_id: int) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == user_id, User.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    async def set_user_flag(
        db: AsyncSession,
        user_id: int,
        action: ModerationActionType,
        actor_id: int,
        reason: Optional[str] = None,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[User, bool]:
        """
        Restrict, unrestrict, ban or unban a user. Biodata status is not
        touched; visibility follows from the flags.

        Returns:
            (user, changed)

        Raises:
            NotFoundError: If the user does not exist
            ForbiddenError: If the target is an admin
        """
        if action not in USER_FLAG_ACTIONS:
            raise ValueError(f"{action.value} is not a user action")
        column, value, event = USER_FLAG_ACTIONS[action]
        flag = getattr(User, column)

        result = await db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.deleted_at.is_(None),
                User.role != Role.ADMIN,
                flag != value,
            )
            .values({column: value})
        )
        if result.rowcount == 0:
            user = await ModerationService._get_user(db, user_id)
            if user.role == Role.ADMIN:
                raise ForbiddenError("Admin accounts cannot be restricted or banned")
            if getattr(user, column) == value:
                logger.info("User %s already has %s=%s", user_id, column, value)
                return user, False
            raise ConflictError(f"Could not {action.value} user {user_id}")

        await ModerationService.record(db, TargetType.USER, user_id, action, actor_id, reason)
        await db.commit()
        user = await ModerationService._get_user(db, user_id)

        logger.info("Admin %s: %s user %s", actor_id, action.value, user_id)
        await notifier.publish(event, {"user_id": user_id, "actor_id": actor_id})
        return user, True

    @staticmethod
    async def restrict_user(db, user_id, actor_id, notifier=default_notifier):
        return await ModerationService.set_user_flag(
            db, user_id, ModerationActionType.RESTRICT, actor_id, notifier=notifier
        )

    @staticmethod
    async def unrestrict_user(db, user_id, actor_id, notifier=default_notifier):
        return await ModerationService.set_user_flag(
            db, user_id, ModerationActionType.UNRESTRICT, actor_id, notifier=notifier
        )

    @staticmethod
    async def ban_user(db, user_id, actor_id, notifier=default_notifier):
        return await ModerationService.set_user_flag(
            db, user_id, ModerationActionType.BAN, actor_id, notifier=notifier
        )

    @staticmethod
    async def unban_user(db, user_id, actor_id, notifier=default_notifier):
        return await ModerationService.set_user_flag(
            db, user_id, ModerationActionType.UNBAN, actor_id, notifier=notifier
        )

    @staticmethod
    async def review_verification(
        db: AsyncSession,
        user_id: int,
        approve: bool,
        actor_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> User:
        """
        Approve or deny a pending alumni verification request.

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the user has no pending request
        """
        values = {"verification_requested": False}
        if approve:
            values["alumni_verified"] = True
        result = await db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.deleted_at.is_(None),
                User.verification_requested.is_(True),
            )
            .values(values)
        )
        if result.rowcount == 0:
            await ModerationService._get_user(db, user_id)
            raise ConflictError("No verification request found for this user")

        action = ModerationActionType.VERIFY if approve else ModerationActionType.DENY_VERIFICATION
        await ModerationService.record(db, TargetType.USER, user_id, action, actor_id)
        await db.commit()
        user = await ModerationService._get_user(db, user_id)

        logger.info("Admin %s: %s user %s", actor_id, action.value, user_id)
        event = NotificationEvent.USER_VERIFIED if approve else NotificationEvent.USER_VERIFICATION_DENIED
        await notifier.publish(event, {"user_id": user_id, "actor_id": actor_id})
        return user

    @staticmethod
    async def list_verification_requests(
        db: AsyncSession, page: int, page_size: int
    ) -> Tuple[List[User], int]:
        """Users waiting for alumni verification, newest first."""
        query = (
            select(User)
            .where(
                User.deleted_at.is_(None),
                User.verification_requested.is_(True),
                User.alumni_verified.is_(False),
            )
            .order_by(User.created_at.desc(), User.id.desc())
        )
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def list_profiles(
        db: AsyncSession,
        page: int,
        page_size: int,
        status: Optional[ProfileStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Profile], int]:
        """
        Biodata for the admin tables. Pending items come oldest first so the
        review queue is worked in order; other lists show newest first.
        """
        query = select(Profile).join(User, User.id == Profile.user_id)
        if status is not None:
            query = query.where(Profile.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Profile.profile_id.ilike(pattern),
                    User.name.ilike(pattern),
                    User.username.ilike(pattern),
                    Profile.present_address_district.ilike(pattern),
                )
            )
        if status == ProfileStatus.PENDING_APPROVAL:
            query = query.order_by(Profile.created_at.asc(), Profile.id.asc())
        else:
            query = query.order_by(Profile.created_at.desc(), Profile.id.desc())
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def list_users(
        db: AsyncSession,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        restricted: Optional[bool] = None,
        banned: Optional[bool] = None,
    ) -> Tuple[List[User], int]:
        query = select(User).where(User.deleted_at.is_(None))
        if restricted is not None:
            query = query.where(User.is_restricted.is_(restricted))
        if banned is not None:
            query = query.where(User.is_banned.is_(banned))
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), User.username.ilike(pattern)))
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def list_actions(
        db: AsyncSession,
        page: int,
        page_size: int,
        target_type: Optional[TargetType] = None,
        target_id: Optional[str] = None,
    ) -> Tuple[List[ModerationAction], int]:
        """Audit log, newest first."""
        query = select(ModerationAction)
        if target_type is not None:
            query = query.where(ModerationAction.target_type == target_type)
        if target_id is not None:
            query = query.where(ModerationAction.target_id == target_id)
        query = query.order_by(ModerationAction.created_at.desc(), ModerationAction.id.desc())
        return await paginate_query(db, query, page, page_size)
