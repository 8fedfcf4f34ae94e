from datetime import timedelta

import pytest
from dependency_injector import providers

from linkapi.services.analytics_service import AnalyticsService

from factories import NOW, auth_headers, make_click, make_link, make_user


@pytest.fixture
def frozen_analytics(app):
    container = app.container
    container.services.analytics_service.override(
        providers.Factory(
            AnalyticsService, settings=container.config.config, clock=lambda: NOW
        )
    )
    yield
    container.services.analytics_service.reset_override()


@pytest.fixture
def owner(db_session):
    user = make_user(db_session)
    link = make_link(db_session, user.id, clicks=4, views=4)
    make_click(db_session, link.id, timestamp=NOW - timedelta(days=1), device="mobile")
    make_click(db_session, link.id, timestamp=NOW - timedelta(days=1), device="mobile")
    make_click(db_session, link.id, timestamp=NOW - timedelta(days=9), device="desktop")
    make_click(db_session, link.id, timestamp=NOW, device="desktop")
    return user


def test_analytics_requires_auth(client):
    assert client.get("/api/v1/analytics/insights").status_code == 401


def test_insights(client, owner, frozen_analytics):
    res = client.get(
        "/api/v1/analytics/insights",
        params={"period": "7d"},
        headers=auth_headers(owner.id),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["total_clicks"] == 4
    assert body["period_clicks"] == 3
    assert body["previous_period_clicks"] == 1
    assert body["clicks_change"] == 200
    assert body["earnings_change"] is None


def test_chart_is_dense(client, owner, frozen_analytics):
    res = client.get(
        "/api/v1/analytics/chart",
        params={"period": "7d"},
        headers=auth_headers(owner.id),
    )

    points = res.json()
    assert len(points) == 8
    assert points[-1] == {
        "date": "2026-03-15",
        "clicks": 1,
        "views": 1,
        "earnings": "0.00",
    }
    assert points[-2]["clicks"] == 2


def test_devices_default_to_all_time(client, owner, frozen_analytics):
    res = client.get("/api/v1/analytics/devices", headers=auth_headers(owner.id))

    assert {item["device"]: item["percentage"] for item in res.json()} == {
        "mobile": 50,
        "desktop": 50,
    }


def test_top_links_limit_is_validated(client, owner, frozen_analytics):
    res = client.get(
        "/api/v1/analytics/top-links",
        params={"limit": 500},
        headers=auth_headers(owner.id),
    )

    assert res.status_code == 422


def test_link_analytics_for_foreign_link_is_404(
    client, db_session, owner, frozen_analytics
):
    other = make_user(db_session, email="other@example.com")
    link = make_link(db_session, other.id, short_code="other1")

    res = client.get(
        f"/api/v1/analytics/links/{link.id}", headers=auth_headers(owner.id)
    )

    assert res.status_code == 404
