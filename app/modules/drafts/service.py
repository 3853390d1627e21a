"""
DraftsService - server-of-record storage for in-progress biodata forms.

One draft per user. Saves are atomic upserts keyed by the owner, so many
saves per second from the same owner can never produce two rows or a
merged document: the last write (by revision) wins.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.base import utcnow
from app.core.exceptions import ValidationError
from .models import BIODATA_STEPS, Draft

logger = logging.getLogger(__name__)


def _dialect_insert(db: AsyncSession):
    """Pick the INSERT construct that supports ON CONFLICT for the bound dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Draft upsert is not supported on {dialect}")


class DraftsService:
    """
    Drafts service.
    Every method takes the request session; the caller owns the transaction.
    """

    @staticmethod
    async def get_draft(db: AsyncSession, user_id: int) -> Optional[Draft]:
        """
        Get the user's draft.

        Returns:
            The draft, or None when the user has no draft
        """
        result = await db.execute(
            select(Draft)
            .where(Draft.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def save_draft(
        db: AsyncSession,
        user_id: int,
        current_step: int,
        draft_data: Dict[str, Any],
        revision: Optional[int] = None,
    ) -> Tuple[Draft, bool]:
        """
        Create or overwrite the user's draft.

        Args:
            user_id: Owner of the draft
            current_step: Step the user is on (1..BIODATA_STEPS)
            draft_data: Complete form state; replaces the stored state
            revision: Client ordering token. When given and older than the
                stored revision the write is skipped. When omitted the server
                takes the next number after the stored revision.

        Returns:
            (stored draft, applied) where applied is False for a skipped write

        Raises:
            ValidationError: If current_step is out of range
        """
        if not 1 <= current_step <= BIODATA_STEPS:
            raise ValidationError(f"Invalid step number: {current_step}")
        if not isinstance(draft_data, dict):
            raise ValidationError("Draft data must be an object")

        now = utcnow()
        insert = _dialect_insert(db)
        stmt = insert(Draft).values(
            user_id=user_id,
            current_step=current_step,
            draft_data=draft_data,
            revision=revision if revision is not None else 1,
            created_at=now,
            updated_at=now,
        )

        if revision is None:
            stmt = stmt.on_conflict_do_update(
                index_elements=[Draft.user_id],
                set_={
                    "current_step": stmt.excluded.current_step,
                    "draft_data": stmt.excluded.draft_data,
                    "updated_at": stmt.excluded.updated_at,
                    "revision": Draft.revision + 1,
                },
            )
        else:
            stmt = stmt.on_conflict_do_update(
                index_elements=[Draft.user_id],
                set_={
                    "current_step": stmt.excluded.current_step,
                    "draft_data": stmt.excluded.draft_data,
                    "updated_at": stmt.excluded.updated_at,
                    "revision": stmt.excluded.revision,
                },
                where=Draft.revision <= stmt.excluded.revision,
            )

        result = await db.execute(stmt)
        applied = result.rowcount != 0

        draft = await DraftsService.get_draft(db, user_id)
        if applied:
            logger.debug("Saved draft for user %s at step %s", user_id, current_step)
        else:
            logger.info(
                "Ignored stale draft save for user %s (revision %s < %s)",
                user_id, revision, draft.revision,
            )
        return draft, applied

    @staticmethod
    async def delete_draft(db: AsyncSession, user_id: int) -> bool:
        """
        Delete the user's draft.

        Returns:
            True if a draft was removed. A missing draft is not an error.
        """
        result = await db.execute(delete(Draft).where(Draft.user_id == user_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted draft for user %s", user_id)
        return deleted
