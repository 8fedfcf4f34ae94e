from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from linkapi.models.link import DeviceType


class InsightsResponse(BaseModel):
    """Dashboard overview for one owner"""

    period: str = Field(..., description="Resolved period token")
    total_views: int = Field(..., description="Lifetime views over all links")
    total_clicks: int = Field(..., description="Lifetime clicks over all links")
    total_earnings: Decimal = Field(..., description="Lifetime link earnings")
    period_clicks: int = Field(..., description="Clicks inside the window")
    previous_period_clicks: int = Field(..., description="Clicks in the prior window")
    views_change: int = Field(..., description="Percentage change vs prior window")
    clicks_change: int = Field(..., description="Percentage change vs prior window")
    earnings_change: Optional[int] = Field(
        None, description="Not tracked; always null"
    )


class TopLinkItem(BaseModel):
    id: int
    title: str
    short_code: str
    clicks: int
    views: int
    earnings: Decimal

    class Config:
        from_attributes = True


class ChartPoint(BaseModel):
    date: str = Field(..., description="UTC calendar day, YYYY-MM-DD")
    clicks: int = 0
    views: int = 0
    # earnings are not attributed to individual days
    earnings: Decimal = Decimal("0.00")


class DeviceBreakdownItem(BaseModel):
    device: DeviceType
    count: int
    percentage: int


class LinkSummary(BaseModel):
    id: int
    title: str
    short_code: str
    total_clicks: int
    total_views: int
    earnings: Decimal


class LinkAnalyticsResponse(BaseModel):
    link: LinkSummary
    period: str
    period_clicks: int
    device_breakdown: List[DeviceBreakdownItem]
    daily_clicks: List[ChartPoint]
