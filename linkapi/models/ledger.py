"""
Ledger tables

Orders are the revenue side (written by the shop collaborator), payouts the
withdrawal side. The available balance is never stored; it is always derived
from these two tables.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from linkapi.models.base import BaseModel, BigIntPK


class OrderPaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# statuses whose amount is subtracted from the available balance
RESERVED_PAYOUT_STATUSES = (
    PayoutStatus.PENDING.value,
    PayoutStatus.PROCESSING.value,
    PayoutStatus.COMPLETED.value,
)


class Order(BaseModel):
    """Completed sale attributed to a seller (revenue event)"""

    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_seller_created", "seller_id", "created_at"),
        Index("idx_orders_payment_status", "payment_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    buyer_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    buyer_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20), default=OrderPaymentStatus.PENDING.value, nullable=False
    )


class Payout(BaseModel):
    __tablename__ = "payouts"
    __table_args__ = (
        Index("idx_payouts_user_created", "user_id", "created_at"),
        Index("idx_payouts_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PayoutStatus.PENDING.value, nullable=False
    )
    account_details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
