from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from linkapi.models.ledger import PayoutStatus
from linkapi.models.user import PaymentProvider
from linkapi.schemas.pagination import PageMeta


class PayoutSchema(BaseModel):
    """Payout request record"""

    id: int = Field(..., description="Payout ID")
    user_id: int = Field(..., description="Creator user ID")
    amount: Decimal = Field(..., description="Requested amount")
    currency: str = Field(..., description="Currency code")
    provider: PaymentProvider = Field(..., description="Payout rail")
    status: PayoutStatus = Field(..., description="Lifecycle status")
    account_details: Optional[Dict[str, Any]] = Field(
        None, description="Snapshot of the provider account"
    )
    transaction_id: Optional[str] = Field(None, description="Provider transaction ID")
    failure_reason: Optional[str] = Field(None, description="Failure reason")
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PayoutCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    provider: PaymentProvider


class PayoutStatusUpdateRequest(BaseModel):
    status: PayoutStatus
    transaction_id: Optional[str] = Field(None, max_length=255)
    failure_reason: Optional[str] = None


class PayoutRejectionReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    NO_PROVIDER = "NO_PROVIDER"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    INVALID_STATE = "INVALID_STATE"


class PayoutResult(BaseModel):
    """Typed outcome of a payout write (created, cancelled or transitioned)"""

    success: bool = Field(..., description="Whether the write happened")
    payout: Optional[PayoutSchema] = Field(None, description="Resulting payout")
    reason: Optional[PayoutRejectionReason] = Field(None, description="Rejection")
    message: str = Field("", description="Human readable message")
    available_balance: Optional[Decimal] = Field(
        None, description="Balance seen by the check"
    )


class PayoutStatsResponse(BaseModel):
    total_earnings: Decimal
    total_paid_out: Decimal
    pending_amount: Decimal
    available_balance: Decimal


class TransactionType(str, Enum):
    EARNING = "earning"
    PAYOUT = "payout"


class TransactionItem(BaseModel):
    id: int
    type: TransactionType
    amount: Decimal = Field(..., description="Positive for earnings, negative for payouts")
    description: str
    status: Optional[str] = None
    counterparty: Optional[str] = None
    date: datetime


class TransactionHistoryResponse(BaseModel):
    transactions: List[TransactionItem]
    pagination: PageMeta


class PayoutListResponse(BaseModel):
    payouts: List[PayoutSchema]
    pagination: PageMeta
