"""
Owner analytics

All endpoints take an optional period token (7d, 30d, 90d, 1y, all);
unknown tokens fall back to 30d.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from linkapi.core.auth_middleware import get_current_user_id
from linkapi.deps import get_analytics_service
from linkapi.schemas.analytics import (
    ChartPoint,
    DeviceBreakdownItem,
    InsightsResponse,
    LinkAnalyticsResponse,
    TopLinkItem,
)
from linkapi.schemas.pagination import PaginationLimits
from linkapi.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/insights", response_model=InsightsResponse)
def get_insights(
    period: Optional[str] = Query(None, description="7d | 30d | 90d | 1y | all"),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> InsightsResponse:
    return analytics_service.get_insights(user_id, period)


@router.get("/top-links", response_model=List[TopLinkItem])
def get_top_links(
    limit: int = Query(
        PaginationLimits.TOP_LINKS["default"],
        ge=PaginationLimits.TOP_LINKS["min"],
        le=PaginationLimits.TOP_LINKS["max"],
    ),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> List[TopLinkItem]:
    return analytics_service.get_top_links(user_id, limit)


@router.get("/chart", response_model=List[ChartPoint])
def get_chart_data(
    period: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> List[ChartPoint]:
    """Daily clicks and views, one point per day even when zero."""
    return analytics_service.get_chart_data(user_id, period)


@router.get("/devices", response_model=List[DeviceBreakdownItem])
def get_device_breakdown(
    period: Optional[str] = Query("all"),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> List[DeviceBreakdownItem]:
    return analytics_service.get_device_breakdown(user_id, period)


@router.get("/links/{link_id}", response_model=LinkAnalyticsResponse)
def get_link_analytics(
    link_id: int = Path(..., ge=1),
    period: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> LinkAnalyticsResponse:
    return analytics_service.get_link_analytics(user_id, link_id, period)
