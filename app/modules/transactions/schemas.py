"""
Credit transaction DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from .models import TransactionType, TransactionStatus


class CreatePurchaseDto(BaseModel):
    """DTO for a credit purchase request"""

    credits: int = Field(..., gt=0, description="Credits to buy")
    price: Decimal = Field(..., gt=0, description="Amount paid")
    payment_reference: str = Field(
        ..., min_length=1, max_length=100, description="Mobile payment transaction id"
    )
    phone_number: str = Field(..., min_length=5, max_length=32, description="Number the payment came from")

    class Config:
        from_attributes = True


class RejectTransactionDto(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class TransactionResponse(BaseModel):
    """Response model for CreditTransaction entity"""

    id: int
    user_id: int
    type: TransactionType
    status: TransactionStatus
    credits: int
    price: Decimal
    payment_reference: Optional[str] = None
    phone_number: Optional[str] = None
    description: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionDecisionResponse(BaseModel):
    """``changed`` is False when the call repeated an earlier decision"""

    transaction: TransactionResponse
    changed: bool
    credits_balance: Optional[int] = None
    message: str
