from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from linkapi.models.ledger import OrderPaymentStatus


class OrderSchema(BaseModel):
    """Revenue event attributed to a seller"""

    id: int
    seller_id: int
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    product_name: Optional[str] = None
    total_amount: Decimal
    currency: str = "USD"
    payment_status: OrderPaymentStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleRecordRequest(BaseModel):
    seller_id: int = Field(..., description="Creator credited with the sale")
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    product_name: str = Field(..., min_length=1, max_length=200)
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = Field(None, max_length=100)
