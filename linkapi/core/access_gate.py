"""
Access gate

Pure decision function for a redirect request. It reads the link and the
clock and nothing else, so it can be exercised without a database.

Built-in rules run in a fixed order and the first deny wins:
1. no link                                   -> NOT_FOUND
2. switched off or status other than active  -> UNAVAILABLE
3. click cap enabled and reached             -> LIMIT_REACHED
Extra rules are appended after these and never reorder them.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from linkapi.models.link import LinkStatus
from linkapi.schemas.link import AccessDecision, AccessDenialReason
from linkapi.utils.timezone_utils import to_utc

# (link, now) -> reason to deny, or None to pass
AccessRule = Callable[[Any, datetime], Optional[AccessDenialReason]]


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, LinkStatus) else str(status)


def cap_reached(link: Any) -> bool:
    """True when limited access is on and no click is left under the cap."""
    if not link.limited_access_enabled or link.max_clicks is None:
        return False
    return link.clicks >= link.max_clicks


def decide(
    link: Optional[Any],
    now: datetime,
    extra_rules: Sequence[AccessRule] = (),
) -> AccessDecision:
    if link is None:
        return AccessDecision.deny(AccessDenialReason.NOT_FOUND)

    if not link.is_active or _status_value(link.status) != LinkStatus.ACTIVE.value:
        return AccessDecision.deny(AccessDenialReason.UNAVAILABLE)

    if cap_reached(link):
        return AccessDecision.deny(AccessDenialReason.LIMIT_REACHED)

    for rule in extra_rules:
        reason = rule(link, now)
        if reason is not None:
            return AccessDecision.deny(reason)

    return AccessDecision.allow()


def scheduling_window_rule(link: Any, now: datetime) -> Optional[AccessDenialReason]:
    """Deny outside [schedule_start, schedule_end]; open ends are unbounded."""
    current = to_utc(now)
    start = to_utc(link.schedule_start)
    end = to_utc(link.schedule_end)
    if start is not None and current < start:
        return AccessDenialReason.UNAVAILABLE
    if end is not None and current > end:
        return AccessDenialReason.UNAVAILABLE
    return None
