import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from linkapi.models import Link, User
from linkapi.repositories.click_repository import ClickRepository
from linkapi.repositories.link_repository import LinkRepository
from linkapi.schemas.link import AccessDenialReason, RequestMetadata
from linkapi.services.redirect_service import RedirectService

from factories import NOW, make_link, make_user

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"


def storage_error():
    return OperationalError("UPDATE links", {}, Exception("database is locked"))


@pytest.fixture
def owner(db_session):
    return make_user(db_session)


@pytest.fixture
def service(db_session, settings, clock):
    return RedirectService(db_session, settings, clock=clock)


class TestRedirectService:
    """Redirect gateway against a real session"""

    def test_served_click_updates_counters_and_stores_event(
        self, service, db_session, owner
    ):
        """A served click bumps link and owner counters and appends one event"""
        # Arrange
        link = make_link(db_session, owner.id)
        metadata = RequestMetadata(
            user_agent=IPHONE, referrer="https://news.example", ip_address="1.2.3.4"
        )

        # Act
        result = service.handle("abc123", metadata)

        # Assert
        assert result.success is True
        assert result.url == "https://example.com/landing"
        assert result.title == "My link"

        stored = LinkRepository(db_session).get_by_id(link.id)
        assert stored.clicks == 1
        assert stored.views == 1

        events = ClickRepository(db_session).find_all({"link_id": link.id})
        assert len(events) == 1
        assert events[0].device.value == "mobile"
        assert events[0].referrer == "https://news.example"

        db_session.expire_all()
        user = db_session.get(User, owner.id)
        assert user.total_clicks == 1
        assert user.total_views == 1

    def test_event_timestamp_defaults_to_clock(self, service, db_session, owner):
        link = make_link(db_session, owner.id)

        service.handle("abc123", RequestMetadata())

        event = ClickRepository(db_session).find_all({"link_id": link.id})[0]
        assert event.timestamp.replace(tzinfo=None) == NOW.replace(tzinfo=None)

    def test_unknown_code_is_not_found(self, service, db_session, owner):
        result = service.handle("missing", RequestMetadata())

        assert result.success is False
        assert result.reason == AccessDenialReason.NOT_FOUND
        assert result.url is None

    @pytest.mark.parametrize(
        "overrides",
        [{"is_active": False}, {"status": "inactive"}, {"status": "scheduled"}],
    )
    def test_unavailable_link_records_nothing(
        self, service, db_session, owner, overrides
    ):
        # Arrange
        link = make_link(db_session, owner.id, **overrides)

        # Act
        result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.reason == AccessDenialReason.UNAVAILABLE
        assert ClickRepository(db_session).count_for_link(link.id) == 0
        assert LinkRepository(db_session).get_by_id(link.id).clicks == 0

    def test_cap_admits_exactly_max_clicks(self, service, db_session, owner):
        """With max_clicks=2 the third request is refused and nothing more is stored"""
        # Arrange
        link = make_link(
            db_session, owner.id, limited_access_enabled=True, max_clicks=2
        )

        # Act
        results = [service.handle("abc123", RequestMetadata()) for _ in range(3)]

        # Assert
        assert [r.success for r in results] == [True, True, False]
        assert results[2].reason == AccessDenialReason.LIMIT_REACHED
        assert LinkRepository(db_session).get_by_id(link.id).clicks == 2
        assert ClickRepository(db_session).count_for_link(link.id) == 2

    def test_lost_race_is_limit_reached_without_event(
        self, service, db_session, owner
    ):
        """A stale read that passes the gate still loses at the conditional update"""
        # Arrange
        link = make_link(
            db_session, owner.id, limited_access_enabled=True, max_clicks=1
        )
        link_repo = LinkRepository(db_session)
        stale = link_repo.get_by_short_code("abc123")
        db_session.query(Link).filter(Link.id == link.id).update({Link.clicks: 1})
        db_session.commit()
        fresh = link_repo.get_by_short_code("abc123")

        # Act
        with patch.object(
            service.link_repo, "get_by_short_code", side_effect=[stale, fresh]
        ):
            result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.success is False
        assert result.reason == AccessDenialReason.LIMIT_REACHED
        assert ClickRepository(db_session).count_for_link(link.id) == 0
        assert link_repo.get_by_id(link.id).clicks == 1

    def test_storage_error_is_retried(self, service, db_session, owner):
        # Arrange
        link = make_link(db_session, owner.id)

        # Act
        with patch.object(
            service.link_repo,
            "try_increment_with_cap",
            side_effect=[storage_error(), True],
        ) as increment:
            result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.success is True
        assert increment.call_count == 2
        assert ClickRepository(db_session).count_for_link(link.id) == 1

    def test_redirect_served_when_every_attempt_fails(
        self, service, db_session, owner
    ):
        """The click is dropped, the visitor still gets the destination"""
        # Arrange
        link = make_link(db_session, owner.id)

        # Act
        with patch.object(
            service.link_repo,
            "try_increment_with_cap",
            side_effect=storage_error(),
        ) as increment:
            result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.success is True
        assert result.url == "https://example.com/landing"
        assert increment.call_count == 2
        assert ClickRepository(db_session).count_for_link(link.id) == 0

    def test_owner_stats_failure_does_not_fail_redirect(
        self, service, db_session, owner
    ):
        # Arrange
        link = make_link(db_session, owner.id)

        # Act
        with patch.object(
            service.user_repo, "increment_stats", side_effect=storage_error()
        ):
            result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.success is True
        assert LinkRepository(db_session).get_by_id(link.id).clicks == 1
        assert ClickRepository(db_session).count_for_link(link.id) == 1

    def test_owner_stats_non_storage_error_does_not_fail_redirect(
        self, service, db_session, owner
    ):
        # Arrange
        link = make_link(db_session, owner.id)

        # Act
        with patch.object(
            service.user_repo,
            "increment_stats",
            side_effect=RuntimeError("stats service down"),
        ):
            result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.success is True
        assert result.url == link.url
        assert LinkRepository(db_session).get_by_id(link.id).clicks == 1

    def test_scheduling_window_enforced_when_enabled(
        self, db_session, settings, clock, owner
    ):
        # Arrange
        settings.ENFORCE_SCHEDULING_WINDOW = True
        service = RedirectService(db_session, settings, clock=clock)
        make_link(
            db_session,
            owner.id,
            schedule_start=NOW.replace(year=2027),
        )

        # Act
        result = service.handle("abc123", RequestMetadata())

        # Assert
        assert result.reason == AccessDenialReason.UNAVAILABLE

    def test_extra_rule_can_deny(self, db_session, settings, clock, owner):
        make_link(db_session, owner.id)
        service = RedirectService(
            db_session,
            settings,
            clock=clock,
            extra_rules=[lambda link, now: AccessDenialReason.UNAVAILABLE],
        )

        result = service.handle("abc123", RequestMetadata())

        assert result.reason == AccessDenialReason.UNAVAILABLE


class TestConcurrentRedirects:
    def test_cap_holds_under_concurrent_requests(
        self, file_session_factory, settings, clock
    ):
        """Eight simultaneous requests on a one-click link serve exactly one"""
        # Arrange
        setup = file_session_factory()
        owner = make_user(setup)
        link = make_link(setup, owner.id, limited_access_enabled=True, max_clicks=1)
        setup.close()

        workers = 8
        barrier = threading.Barrier(workers)

        def visit(_):
            session = file_session_factory()
            try:
                service = RedirectService(session, settings, clock=clock)
                barrier.wait(timeout=10)
                return service.handle("abc123", RequestMetadata())
            finally:
                session.close()

        # Act
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(visit, range(workers)))

        # Assert
        served = [r for r in results if r.success]
        refused = [r for r in results if not r.success]
        assert len(served) == 1
        assert {r.reason for r in refused} == {AccessDenialReason.LIMIT_REACHED}

        check = file_session_factory()
        try:
            assert LinkRepository(check).get_by_id(link.id).clicks == 1
            assert ClickRepository(check).count_for_link(link.id) == 1
        finally:
            check.close()
