"""
Analytics aggregator

Read-only rollups over links and click events. Every call is a snapshot of
its own reads; nothing here takes locks or writes.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from linkapi.config import Settings
from linkapi.core.exceptions import NotFoundError
from linkapi.models.link import DeviceType, Link as LinkModel
from linkapi.repositories.click_repository import ClickRepository
from linkapi.repositories.link_repository import LinkRepository
from linkapi.schemas.analytics import (
    ChartPoint,
    DeviceBreakdownItem,
    InsightsResponse,
    LinkAnalyticsResponse,
    LinkSummary,
    TopLinkItem,
)
from linkapi.utils.money import to_money
from linkapi.utils.periods import (
    DateWindow,
    dense_day_series,
    percentage_change,
    previous_window,
    resolve_period,
    share_percentage,
)
from linkapi.utils.timezone_utils import Clock, to_utc, utc_now

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, db: Session, settings: Settings, clock: Optional[Clock] = None):
        self.db = db
        self.settings = settings
        self.clock = clock or utc_now
        self.link_repo = LinkRepository(db)
        self.click_repo = ClickRepository(db)

    def _window(self, period: Optional[str]) -> DateWindow:
        token = period or self.settings.DEFAULT_ANALYTICS_PERIOD
        return resolve_period(token, self.clock())

    def _lifetime_totals(self, user_id: int) -> Dict[str, object]:
        views, clicks, earnings = (
            self.db.query(
                func.coalesce(func.sum(LinkModel.views), 0),
                func.coalesce(func.sum(LinkModel.clicks), 0),
                func.coalesce(func.sum(LinkModel.earnings), 0),
            )
            .filter(LinkModel.user_id == user_id)
            .one()
        )
        return {
            "views": int(views),
            "clicks": int(clicks),
            "earnings": to_money(earnings),
        }

    def get_insights(
        self, user_id: int, period: Optional[str] = None
    ) -> InsightsResponse:
        """Lifetime totals plus current vs previous window click counts.

        views_change is computed from click events like clicks_change, since
        every served click is also a view. Earnings are not tracked per
        window, so earnings_change is always None.
        """
        window = self._window(period)
        previous = previous_window(window)
        totals = self._lifetime_totals(user_id)

        current_clicks = self.click_repo.count_in_window(
            window.start, window.end, user_id=user_id
        )
        previous_clicks = self.click_repo.count_in_window(
            previous.start, previous.end, user_id=user_id, include_end=False
        )
        change = percentage_change(current_clicks, previous_clicks)

        return InsightsResponse(
            period=window.period,
            total_views=totals["views"],
            total_clicks=totals["clicks"],
            total_earnings=totals["earnings"],
            period_clicks=current_clicks,
            previous_period_clicks=previous_clicks,
            views_change=change,
            clicks_change=change,
            earnings_change=None,
        )

    def get_top_links(self, user_id: int, limit: int = 5) -> List[TopLinkItem]:
        limit = max(1, min(limit, self.settings.TOP_LINKS_MAX_LIMIT))
        links = self.link_repo.get_top_by_clicks(user_id, limit)
        return [
            TopLinkItem(
                id=link.id,
                title=link.title,
                short_code=link.short_code,
                clicks=link.clicks,
                views=link.views,
                earnings=to_money(link.earnings),
            )
            for link in links
        ]

    def _daily_series(
        self,
        window: DateWindow,
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
    ) -> List[ChartPoint]:
        counts = self.click_repo.daily_counts(
            window.start, window.end, user_id=user_id, link_id=link_id
        )

        start_day = window.start.date()
        if window.period == "all":
            # an epoch-wide series would be tens of thousands of empty days
            first = to_utc(self.click_repo.first_click_at(user_id, link_id))
            start_day = first.date() if first else window.end.date()

        return [
            ChartPoint(date=point["date"], clicks=point["count"], views=point["count"])
            for point in dense_day_series(start_day, window.end.date(), counts)
        ]

    def get_chart_data(
        self, user_id: int, period: Optional[str] = None
    ) -> List[ChartPoint]:
        """One point per UTC day in the window, zero-filled."""
        return self._daily_series(self._window(period), user_id=user_id)

    def _device_breakdown(
        self,
        window: Optional[DateWindow],
        user_id: Optional[int] = None,
        link_id: Optional[int] = None,
    ) -> List[DeviceBreakdownItem]:
        counts = self.click_repo.device_counts(
            window.start if window else None,
            window.end if window else None,
            user_id=user_id,
            link_id=link_id,
        )
        total = sum(counts.values())

        items = []
        for device, count in counts.items():
            try:
                device_type = DeviceType(device or DeviceType.UNKNOWN.value)
            except ValueError:
                device_type = DeviceType.UNKNOWN
            items.append(
                DeviceBreakdownItem(
                    device=device_type,
                    count=count,
                    percentage=share_percentage(count, total),
                )
            )

        items.sort(key=lambda item: item.count, reverse=True)
        return items

    def get_device_breakdown(
        self, user_id: int, period: Optional[str] = "all"
    ) -> List[DeviceBreakdownItem]:
        """Click share per device class; all-time unless a period is given."""
        window = None if period in (None, "all") else self._window(period)
        return self._device_breakdown(window, user_id=user_id)

    def get_link_analytics(
        self, user_id: int, link_id: int, period: Optional[str] = None
    ) -> LinkAnalyticsResponse:
        link = self.link_repo.get_owned(user_id, link_id)
        if link is None:
            raise NotFoundError("Link not found", details={"link_id": link_id})

        window = self._window(period)
        period_clicks = self.click_repo.count_in_window(
            window.start, window.end, link_id=link_id
        )
        logger.info(
            f"Link {link_id} analytics ({window.period}): {period_clicks} clicks"
        )

        return LinkAnalyticsResponse(
            link=LinkSummary(
                id=link.id,
                title=link.title,
                short_code=link.short_code,
                total_clicks=link.clicks,
                total_views=link.views,
                earnings=to_money(link.earnings),
            ),
            period=window.period,
            period_clicks=period_clicks,
            device_breakdown=self._device_breakdown(window, link_id=link_id),
            daily_clicks=self._daily_series(window, link_id=link_id),
        )
