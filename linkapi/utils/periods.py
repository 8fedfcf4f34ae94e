"""
Reporting windows

A period token resolves to a [start, end] window anchored at "now". The
previous window has the same duration and ends where the current one starts.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Mapping, Optional

from linkapi.utils.timezone_utils import to_utc

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

PERIOD_DAYS: Dict[str, Optional[int]] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}
DEFAULT_PERIOD = "30d"


@dataclass(frozen=True)
class DateWindow:
    period: str
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def normalize_period(period: Optional[str]) -> str:
    if period in PERIOD_DAYS:
        return period
    if period:
        logger.info(f"Unknown period '{period}', falling back to {DEFAULT_PERIOD}")
    return DEFAULT_PERIOD


def resolve_period(period: Optional[str], now: datetime) -> DateWindow:
    """Window for a period token; unknown tokens mean 30d, 'all' starts at the epoch."""
    token = normalize_period(period)
    end = to_utc(now)
    days = PERIOD_DAYS[token]
    start = EPOCH if days is None else end - timedelta(days=days)
    return DateWindow(period=token, start=start, end=end)


def previous_window(window: DateWindow) -> DateWindow:
    return DateWindow(
        period=window.period,
        start=window.start - window.duration,
        end=window.start,
    )


def round_half_up(value: float) -> int:
    # 12.5 -> 13, -2.5 -> -2
    return int(math.floor(value + 0.5))


def percentage_change(current: int, previous: int) -> int:
    """Rounded percent change; a zero baseline gives 100 for growth, else 0."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round_half_up((current - previous) / previous * 100)


def share_percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def day_range(start_day: date, end_day: date) -> List[date]:
    """Every calendar day from start_day to end_day inclusive."""
    if end_day < start_day:
        return []
    return [
        start_day + timedelta(days=offset)
        for offset in range((end_day - start_day).days + 1)
    ]


def dense_day_series(
    start_day: date, end_day: date, counts: Mapping[str, int]
) -> List[Dict[str, int | str]]:
    """One {"date", "count"} point per day, zero-filled.

    Args:
        start_day: first day of the series
        end_day: last day of the series (inclusive)
        counts: sparse counts keyed by ISO date string

    Returns:
        List of points ordered by date, exactly (end_day - start_day).days + 1 long
    """
    return [
        {"date": day.isoformat(), "count": int(counts.get(day.isoformat(), 0))}
        for day in day_range(start_day, end_day)
    ]
