"""
Transactions Router - credit purchase requests and their review.
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from app.core.notifications import LifecycleNotifier, get_notifier
from app.core.pagination import Page, PageParams, build_paginated_response, page_params
from app.modules.users.auth import TokenData, get_current_user, require_admin
from .models import TransactionStatus, TransactionType
from .service import TransactionsService
from .schemas import (
    CreatePurchaseDto,
    RejectTransactionDto,
    TransactionDecisionResponse,
    TransactionResponse,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _page(items, total, params: PageParams):
    return build_paginated_response(
        [TransactionResponse.model_validate(t) for t in items], total, params.page, params.limit
    )


@router.post("/purchase", response_model=TransactionResponse, status_code=201)
async def create_purchase(
    dto: CreatePurchaseDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Submit a credit purchase request.
    Credits are added once an admin approves it.
    """
    return await TransactionsService.create_purchase(db, current_user.user_id, dto)


@router.get("/me", response_model=Page[TransactionResponse])
async def list_my_transactions(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    items, total = await TransactionsService.list_mine(
        db, current_user.user_id, params.page, params.limit
    )
    return _page(items, total, params)


@router.get("/pending", response_model=Page[TransactionResponse])
async def list_pending_transactions(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    """Purchase requests awaiting review, oldest first"""
    items, total = await TransactionsService.list_pending(db, params.page, params.limit)
    return _page(items, total, params)


@router.get("", response_model=Page[TransactionResponse])
async def list_transactions(
    params: PageParams = Depends(page_params),
    status: Optional[TransactionStatus] = Query(None, description="Filter by status"),
    type: Optional[TransactionType] = Query(None, description="Filter by type"),
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(require_admin)
):
    items, total = await TransactionsService.list_all(
        db, params.page, params.limit, status=status, type=type
    )
    return _page(items, total, params)


@router.put("/{transaction_id}/approve", response_model=TransactionDecisionResponse)
async def approve_transaction(
    transaction_id: int,
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    """Approve a purchase and credit the buyer. Repeating the call credits nothing."""
    transaction, changed, balance = await TransactionsService.approve(
        db, transaction_id, current_user.user_id, notifier
    )
    return TransactionDecisionResponse(
        transaction=TransactionResponse.model_validate(transaction),
        changed=changed,
        credits_balance=balance,
        message="Credits added" if changed else "Transaction was already approved",
    )


@router.put("/{transaction_id}/reject", response_model=TransactionDecisionResponse)
async def reject_transaction(
    transaction_id: int,
    dto: Optional[RejectTransactionDto] = Body(None),
    db: AsyncSession = Depends(get_db_util),
    notifier: LifecycleNotifier = Depends(get_notifier),
    current_user: TokenData = Depends(require_admin)
):
    reason = dto.reason if dto else None
    transaction, changed = await TransactionsService.reject(
        db, transaction_id, current_user.user_id, reason, notifier
    )
    return TransactionDecisionResponse(
        transaction=TransactionResponse.model_validate(transaction),
        changed=changed,
        message="Transaction rejected" if changed else "Transaction was already rejected",
    )
