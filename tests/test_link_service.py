from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from linkapi.core.exceptions import NotFoundError, ValidationError
from linkapi.models import User
from linkapi.models.link import LinkStatus
from linkapi.repositories.click_repository import ClickRepository
from linkapi.repositories.link_repository import LinkRepository
from linkapi.schemas.link import LinkCreateRequest
from linkapi.services.link_service import SHORT_CODE_ALPHABET, LinkService

from factories import NOW, make_click, make_link, make_user


@pytest.fixture
def owner(db_session):
    return make_user(db_session)


@pytest.fixture
def service(db_session, settings, clock):
    return LinkService(db_session, settings, clock=clock)


def link_count(db_session, user_id):
    db_session.expire_all()
    return db_session.get(User, user_id).link_count


class TestCreateLink:
    def test_create_renders_short_url_and_counts_link(
        self, service, db_session, owner
    ):
        # Arrange
        request = LinkCreateRequest(title="Course", url="https://shop.example/c")

        # Act
        link = service.create_link(owner.id, request)

        # Assert
        assert len(link.short_code) == 8
        assert set(link.short_code) <= set(SHORT_CODE_ALPHABET)
        assert link.full_short_url == f"https://lnk.test/l/{link.short_code}"
        assert link.original_url == "https://shop.example/c"
        assert link.status == LinkStatus.ACTIVE
        assert link.is_active is True
        assert link.clicks == 0
        assert link_count(db_session, owner.id) == 1

    def test_inactive_status_creates_switched_off_link(self, service, owner):
        request = LinkCreateRequest(
            title="Later", url="https://shop.example/l", status=LinkStatus.INACTIVE
        )

        link = service.create_link(owner.id, request)

        assert link.is_active is False

    def test_short_code_collision_is_retried(self, service, db_session, owner):
        make_link(db_session, owner.id, short_code="taken")

        with patch.object(
            service, "generate_short_code", side_effect=["taken", "fresh"]
        ):
            link = service.create_link(
                owner.id, LinkCreateRequest(title="t", url="https://x.example")
            )

        assert link.short_code == "fresh"

    def test_gives_up_after_repeated_collisions(self, service, db_session, owner):
        make_link(db_session, owner.id, short_code="taken")

        with patch.object(service, "generate_short_code", return_value="taken"):
            with pytest.raises(ValidationError):
                service.create_link(
                    owner.id, LinkCreateRequest(title="t", url="https://x.example")
                )

        assert link_count(db_session, owner.id) == 0

    def test_cap_without_max_clicks_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            LinkCreateRequest(
                title="t", url="https://x.example", limited_access_enabled=True
            )

    def test_schedule_must_be_ordered(self):
        with pytest.raises(PydanticValidationError):
            LinkCreateRequest(
                title="t",
                url="https://x.example",
                schedule_start=NOW,
                schedule_end=NOW - timedelta(days=1),
            )


class TestLinkLifecycle:
    def test_get_link_of_another_user_is_not_found(self, service, db_session, owner):
        other = make_user(db_session, email="other@example.com")
        link = make_link(db_session, other.id)

        with pytest.raises(NotFoundError):
            service.get_link(owner.id, link.id)

    def test_toggle_flips_active_and_status(self, service, db_session, owner):
        # Arrange
        link = make_link(db_session, owner.id)

        # Act
        off = service.toggle_link(owner.id, link.id)
        on = service.toggle_link(owner.id, link.id)

        # Assert
        assert (off.is_active, off.status) == (False, LinkStatus.INACTIVE)
        assert (on.is_active, on.status) == (True, LinkStatus.ACTIVE)

    def test_delete_removes_link_and_its_clicks(self, service, db_session, owner):
        # Arrange
        link = make_link(db_session, owner.id)
        kept = make_link(db_session, owner.id, short_code="keep01")
        for _ in range(3):
            make_click(db_session, link.id)
        make_click(db_session, kept.id)
        db_session.query(User).filter(User.id == owner.id).update(
            {User.link_count: 2}
        )
        db_session.commit()

        # Act
        deleted = service.delete_link(owner.id, link.id)

        # Assert
        assert deleted is True
        assert LinkRepository(db_session).get_by_id(link.id) is None
        assert ClickRepository(db_session).count_for_link(link.id) == 0
        assert ClickRepository(db_session).count_for_link(kept.id) == 1
        assert link_count(db_session, owner.id) == 1

    def test_delete_missing_link_is_not_found(self, service, owner):
        with pytest.raises(NotFoundError):
            service.delete_link(owner.id, 999)

    def test_link_count_never_goes_negative(self, service, db_session, owner):
        link = make_link(db_session, owner.id)

        service.delete_link(owner.id, link.id)

        assert link_count(db_session, owner.id) == 0


class TestRetention:
    def test_purge_drops_only_events_past_retention(
        self, service, db_session, owner
    ):
        # Arrange
        link = make_link(db_session, owner.id)
        make_click(db_session, link.id, timestamp=NOW - timedelta(days=31))
        make_click(db_session, link.id, timestamp=NOW - timedelta(days=29))
        make_click(db_session, link.id, timestamp=NOW)

        # Act
        deleted = service.purge_expired_clicks()

        # Assert
        assert deleted == 1
        assert ClickRepository(db_session).count_for_link(link.id) == 2
        assert LinkRepository(db_session).get_by_id(link.id).clicks == 0
