from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.schema import UniqueConstraint

from linkapi.models.base import BaseModel, BigIntPK


class PaymentProvider(str, Enum):
    """Supported payout rails"""

    STRIPE = "stripe"
    PAYPAL = "paypal"
    RAZORPAY = "razorpay"
    BANK_TRANSFER = "bank_transfer"


class User(BaseModel):
    """Creator account as seen by the core.

    Profile data is owned by the user service; only the cached traffic
    aggregates and the ledger lock counter are written here.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    username: Mapped[Optional[str]] = mapped_column(
        String(50), unique=True, nullable=True
    )

    # cached aggregates, bumped best-effort by the redirect gateway
    total_clicks: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_views: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_earnings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    link_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # bumped first in every payout write transaction (per-user lock)
    ledger_version: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    payment_providers: Mapped[list["PaymentProviderAccount"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class PaymentProviderAccount(BaseModel):
    __tablename__ = "payment_provider_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_provider_account_user"),
        Index("idx_provider_accounts_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    account_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship(back_populates="payment_providers")
