"""
TransactionsService - credit purchases and their admin review.

A purchase request stays pending until an admin approves or rejects it. The
status change and the credit top-up happen in one database transaction, and
the status change is a conditional UPDATE on ``status = pending``, so two
concurrent approvals credit the buyer exactly once.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.base import utcnow
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.notifications import LifecycleNotifier, NotificationEvent, notifier as default_notifier
from app.core.pagination import paginate_query
from app.modules.app_config.service import AppConfigService
from app.modules.moderation.models import ModerationActionType, TargetType
from app.modules.moderation.service import ModerationService
from app.modules.users.models import User
from .models import CreditTransaction, TransactionStatus, TransactionType
from .schemas import CreatePurchaseDto

logger = logging.getLogger(__name__)


class TransactionsService:
    """
    Credit transactions service.
    Decisions commit before notifications go out.
    """

    @staticmethod
    async def create_purchase(
        db: AsyncSession, user_id: int, dto: CreatePurchaseDto
    ) -> CreditTransaction:
        """
        Record a pending purchase request.

        Raises:
            ForbiddenError: If monetization is off or the buyer is banned
            ConflictError: If the buyer already has a pending request with the
                same payment reference
        """
        if not AppConfigService.is_monetization_enabled():
            raise ForbiddenError("Credit purchases are disabled while monetization is off")

        user = await db.get(User, user_id)
        if user is None or user.deleted_at is not None:
            raise NotFoundError("User", user_id)
        if user.is_banned:
            raise ForbiddenError("Banned users cannot buy credits")

        payment_reference = dto.payment_reference.strip()
        duplicate = await db.execute(
            select(CreditTransaction.id).where(
                CreditTransaction.user_id == user_id,
                CreditTransaction.payment_reference == payment_reference,
                CreditTransaction.status == TransactionStatus.pending,
            )
        )
        if duplicate.first() is not None:
            raise ConflictError("A request with this payment reference is already pending")

        transaction = CreditTransaction(
            user_id=user_id,
            type=TransactionType.purchase,
            status=TransactionStatus.pending,
            credits=dto.credits,
            price=dto.price,
            payment_reference=payment_reference,
            phone_number=dto.phone_number.strip(),
            description=f"Purchase of {dto.credits} credits",
        )
        db.add(transaction)
        await db.commit()
        await db.refresh(transaction)

        logger.info(
            "User %s requested %s credits (transaction %s)", user_id, dto.credits, transaction.id
        )
        return transaction

    @staticmethod
    async def get(db: AsyncSession, transaction_id: int) -> CreditTransaction:
        result = await db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    @staticmethod
    async def list_mine(
        db: AsyncSession, user_id: int, page: int, page_size: int
    ) -> Tuple[List[CreditTransaction], int]:
        query = (
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        )
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def list_pending(
        db: AsyncSession, page: int, page_size: int
    ) -> Tuple[List[CreditTransaction], int]:
        """Pending purchases, oldest first"""
        query = (
            select(CreditTransaction)
            .where(
                CreditTransaction.type == TransactionType.purchase,
                CreditTransaction.status == TransactionStatus.pending,
            )
            .order_by(CreditTransaction.created_at.asc(), CreditTransaction.id.asc())
        )
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def list_all(
        db: AsyncSession,
        page: int,
        page_size: int,
        status: Optional[TransactionStatus] = None,
        type: Optional[TransactionType] = None,
    ) -> Tuple[List[CreditTransaction], int]:
        query = select(CreditTransaction)
        if status is not None:
            query = query.where(CreditTransaction.status == status)
        if type is not None:
            query = query.where(CreditTransaction.type == type)
        query = query.order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        return await paginate_query(db, query, page, page_size)

    @staticmethod
    async def _decide(
        db: AsyncSession, transaction_id: int, target: TransactionStatus, actor_id: int
    ) -> Tuple[CreditTransaction, bool]:
        """
        Move a pending purchase to ``target``.
        Returns (transaction, changed); changed is False for a repeat of the
        same decision.
        """
        result = await db.execute(
            update(CreditTransaction)
            .where(
                CreditTransaction.id == transaction_id,
                CreditTransaction.type == TransactionType.purchase,
                CreditTransaction.status == TransactionStatus.pending,
            )
            .values(status=target, processed_by=actor_id, processed_at=utcnow())
        )
        if result.rowcount == 0:
            transaction = await TransactionsService.get(db, transaction_id)
            if transaction.type != TransactionType.purchase:
                raise ConflictError("Only purchase requests can be reviewed")
            if transaction.status == target:
                logger.info("Transaction %s already %s", transaction_id, target.value)
                return transaction, False
            raise ConflictError(
                f"Transaction {transaction_id} is already {transaction.status.value}"
            )
        return await TransactionsService.get(db, transaction_id), True

    @staticmethod
    async def approve(
        db: AsyncSession,
        transaction_id: int,
        actor_id: int,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[CreditTransaction, bool, int]:
        """
        Approve a purchase and credit the buyer.

        Returns:
            (transaction, changed, buyer's credit balance)

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If the transaction was rejected
        """
        transaction, changed = await TransactionsService._decide(
            db, transaction_id, TransactionStatus.approved, actor_id
        )
        if changed:
            await db.execute(
                update(User)
                .where(User.id == transaction.user_id)
                .values(credits=User.credits + transaction.credits)
            )
            db.add(
                CreditTransaction(
                    user_id=transaction.user_id,
                    type=TransactionType.credit_addition,
                    status=TransactionStatus.approved,
                    credits=transaction.credits,
                    price=transaction.price,
                    payment_reference=transaction.payment_reference,
                    description=f"Credits added for transaction {transaction.id}",
                    processed_by=actor_id,
                    processed_at=transaction.processed_at,
                )
            )
            await ModerationService.record(
                db, TargetType.TRANSACTION, transaction_id, ModerationActionType.APPROVE, actor_id
            )
            await db.commit()
            transaction = await TransactionsService.get(db, transaction_id)

        balance = (
            await db.execute(select(User.credits).where(User.id == transaction.user_id))
        ).scalar_one()

        if changed:
            logger.info(
                "Admin %s approved transaction %s: +%s credits for user %s",
                actor_id, transaction_id, transaction.credits, transaction.user_id,
            )
            await notifier.publish(
                NotificationEvent.TRANSACTION_APPROVED,
                {
                    "transaction_id": transaction_id,
                    "user_id": transaction.user_id,
                    "credits": transaction.credits,
                    "actor_id": actor_id,
                },
            )
        return transaction, changed, balance

    @staticmethod
    async def reject(
        db: AsyncSession,
        transaction_id: int,
        actor_id: int,
        reason: Optional[str] = None,
        notifier: LifecycleNotifier = default_notifier,
    ) -> Tuple[CreditTransaction, bool]:
        """
        Reject a purchase. No credits move.

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If the transaction was approved
        """
        transaction, changed = await TransactionsService._decide(
            db, transaction_id, TransactionStatus.rejected, actor_id
        )
        if not changed:
            return transaction, False

        await ModerationService.record(
            db, TargetType.TRANSACTION, transaction_id, ModerationActionType.REJECT, actor_id, reason
        )
        await db.commit()
        transaction = await TransactionsService.get(db, transaction_id)

        logger.info("Admin %s rejected transaction %s", actor_id, transaction_id)
        await notifier.publish(
            NotificationEvent.TRANSACTION_REJECTED,
            {
                "transaction_id": transaction_id,
                "user_id": transaction.user_id,
                "actor_id": actor_id,
                "reason": reason,
            },
        )
        return transaction, True
