import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String,
    DateTime,
    Numeric,
    Integer,
    Text,
    ForeignKey,
    CheckConstraint,
    Enum as SQLEnum,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional

from app.core.db.base import BaseModel


class TransactionType(str, enum.Enum):
    """Transaction type enum"""

    purchase = "purchase"
    credit_addition = "credit_addition"


class TransactionStatus(str, enum.Enum):
    """Transaction status enum"""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class CreditTransaction(BaseModel):
    """
    Credit purchase request and the ledger entries it produces.
    Extends BaseModel which provides: id, created_at, updated_at, deleted_at

    A purchase starts pending with the buyer's payment reference. Approving
    it adds the credits to the buyer and writes a credit_addition entry;
    only pending purchases can change state.
    """

    __tablename__ = "credit_transactions"

    __table_args__ = (
        Index("idx_credit_transaction_user_id", "user_id"),
        Index("idx_credit_transaction_type_status", "type", "status"),
        CheckConstraint("credits > 0", name="credits_positive"),
        CheckConstraint("price >= 0", name="price_non_negative"),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, name="credit_transaction_type_enum", native_enum=False),
        nullable=False,
        default=TransactionType.purchase,
    )

    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(TransactionStatus, name="credit_transaction_status_enum", native_enum=False),
        nullable=False,
        default=TransactionStatus.pending,
        server_default=TransactionStatus.pending.value,
    )

    credits: Mapped[int] = mapped_column(Integer, nullable=False)

    # Price paid in BDT, with 15 digits total, 2 decimal places
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=0,
    )

    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    processed_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, default=None
    )

    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return (
            f"<CreditTransaction(id={self.id}, user={self.user_id}, type={self.type.value},"
            f" status={self.status.value}, credits={self.credits})>"
        )
