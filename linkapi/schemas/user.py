from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from linkapi.models.user import PaymentProvider


class UserStatsSchema(BaseModel):
    """Cached traffic and earnings aggregates for one creator"""

    id: int
    email: str
    username: Optional[str] = None
    total_clicks: int = 0
    total_views: int = 0
    total_earnings: Decimal = Decimal("0")
    link_count: int = 0

    class Config:
        from_attributes = True


class PaymentProviderAccountSchema(BaseModel):
    id: int
    user_id: int
    provider: PaymentProvider
    account_id: Optional[str] = Field(None, description="Provider-side account ID")
    account_email: Optional[str] = Field(None, description="Provider login email")
    is_active: bool = True
    is_default: bool = False

    class Config:
        from_attributes = True

    def snapshot(self) -> dict:
        """Account fields copied onto a payout at request time"""
        return {
            "provider": self.provider.value,
            "account_id": self.account_id,
            "account_email": self.account_email,
        }
