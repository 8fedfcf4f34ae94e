from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from linkapi.core.access_gate import cap_reached, decide, scheduling_window_rule
from linkapi.schemas.link import AccessDenialReason

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def link(**overrides):
    fields = dict(
        is_active=True,
        status="active",
        limited_access_enabled=False,
        max_clicks=None,
        clicks=0,
        schedule_start=None,
        schedule_end=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestDecide:
    def test_missing_link_is_not_found(self):
        decision = decide(None, NOW)

        assert decision.allowed is False
        assert decision.reason == AccessDenialReason.NOT_FOUND

    def test_active_link_is_allowed(self):
        decision = decide(link(), NOW)

        assert decision.allowed is True
        assert decision.reason is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"is_active": False},
            {"status": "inactive"},
            {"status": "scheduled"},
        ],
    )
    def test_switched_off_or_not_active_is_unavailable(self, overrides):
        decision = decide(link(**overrides), NOW)

        assert decision.reason == AccessDenialReason.UNAVAILABLE

    def test_cap_reached_is_limit_reached(self):
        decision = decide(
            link(limited_access_enabled=True, max_clicks=3, clicks=3), NOW
        )

        assert decision.reason == AccessDenialReason.LIMIT_REACHED

    def test_under_cap_is_allowed(self):
        decision = decide(
            link(limited_access_enabled=True, max_clicks=3, clicks=2), NOW
        )

        assert decision.allowed is True

    def test_cap_ignored_when_disabled(self):
        decision = decide(
            link(limited_access_enabled=False, max_clicks=1, clicks=10), NOW
        )

        assert decision.allowed is True

    def test_unavailable_wins_over_limit(self):
        decision = decide(
            link(is_active=False, limited_access_enabled=True, max_clicks=1, clicks=1),
            NOW,
        )

        assert decision.reason == AccessDenialReason.UNAVAILABLE

    def test_extra_rules_run_after_builtin_rules(self):
        calls = []

        def deny_everything(candidate, now):
            calls.append(candidate)
            return AccessDenialReason.UNAVAILABLE

        capped = link(limited_access_enabled=True, max_clicks=1, clicks=1)

        assert decide(capped, NOW, [deny_everything]).reason == (
            AccessDenialReason.LIMIT_REACHED
        )
        assert calls == []

        assert decide(link(), NOW, [deny_everything]).reason == (
            AccessDenialReason.UNAVAILABLE
        )
        assert len(calls) == 1

    def test_decide_does_not_mutate_link(self):
        candidate = link(limited_access_enabled=True, max_clicks=5, clicks=2)

        decide(candidate, NOW)

        assert candidate.clicks == 2


class TestCapReached:
    def test_cap_without_max_clicks_is_open(self):
        assert cap_reached(link(limited_access_enabled=True, max_clicks=None)) is False

    def test_cap_reached_at_boundary(self):
        assert cap_reached(link(limited_access_enabled=True, max_clicks=1, clicks=1))


class TestSchedulingWindowRule:
    def test_before_start_is_unavailable(self):
        candidate = link(schedule_start=NOW + timedelta(hours=1))

        assert scheduling_window_rule(candidate, NOW) == AccessDenialReason.UNAVAILABLE

    def test_after_end_is_unavailable(self):
        candidate = link(schedule_end=NOW - timedelta(seconds=1))

        assert scheduling_window_rule(candidate, NOW) == AccessDenialReason.UNAVAILABLE

    def test_inside_window_passes(self):
        candidate = link(
            schedule_start=NOW - timedelta(days=1), schedule_end=NOW + timedelta(days=1)
        )

        assert scheduling_window_rule(candidate, NOW) is None

    def test_naive_schedule_is_treated_as_utc(self):
        candidate = link(schedule_start=datetime(2026, 3, 15, 13, 0))

        assert scheduling_window_rule(candidate, NOW) == AccessDenialReason.UNAVAILABLE
