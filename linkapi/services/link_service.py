import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from linkapi.config import Settings
from linkapi.core.exceptions import NotFoundError, ValidationError
from linkapi.models.link import LinkStatus
from linkapi.repositories.click_repository import ClickRepository
from linkapi.repositories.link_repository import LinkRepository
from linkapi.repositories.user_repository import UserRepository
from linkapi.schemas.link import LinkCreateRequest, LinkResponse, LinkSchema
from linkapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

SHORT_CODE_ALPHABET = string.ascii_letters + string.digits + "_-"
MAX_SHORT_CODE_ATTEMPTS = 5


class LinkService:
    """Owner-side link lifecycle: create, read, toggle, delete, retention."""

    def __init__(self, db: Session, settings: Settings, clock: Optional[Clock] = None):
        self.db = db
        self.settings = settings
        self.clock = clock or utc_now
        self.link_repo = LinkRepository(db)
        self.click_repo = ClickRepository(db)
        self.user_repo = UserRepository(db)

    def to_response(self, link: LinkSchema) -> LinkResponse:
        return LinkResponse(
            **link.model_dump(),
            full_short_url=self.settings.short_url_for(link.short_code),
        )

    def generate_short_code(self) -> str:
        length = self.settings.SHORT_CODE_LENGTH
        return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))

    def _unique_short_code(self) -> str:
        for _ in range(MAX_SHORT_CODE_ATTEMPTS):
            candidate = self.generate_short_code()
            if not self.link_repo.short_code_exists(candidate):
                return candidate
        raise ValidationError(
            "Could not allocate a unique short code",
            details={"attempts": MAX_SHORT_CODE_ATTEMPTS},
        )

    def create_link(self, user_id: int, request: LinkCreateRequest) -> LinkResponse:
        """Create a link for user_id with a fresh short code.

        Args:
            user_id: owner
            request: link fields and access policy

        Returns:
            LinkResponse: stored link with its rendered short URL
        """
        short_code = self._unique_short_code()
        is_active = request.status != LinkStatus.INACTIVE

        link = self.link_repo.create(
            commit=False,
            user_id=user_id,
            title=request.title,
            url=request.url,
            original_url=request.original_url or request.url,
            short_code=short_code,
            description=request.description,
            status=request.status.value,
            is_active=is_active,
            schedule_start=request.schedule_start,
            schedule_end=request.schedule_end,
            limited_access_enabled=request.limited_access_enabled,
            max_clicks=request.max_clicks,
            is_subscriber_only=request.is_subscriber_only,
        )
        self.user_repo.adjust_link_count(user_id, 1, commit=False)
        self.db.commit()

        logger.info(f"Created link {link.id} ({short_code}) for user {user_id}")
        return self.to_response(link)

    def get_link(self, user_id: int, link_id: int) -> LinkResponse:
        link = self.link_repo.get_owned(user_id, link_id)
        if link is None:
            raise NotFoundError("Link not found", details={"link_id": link_id})
        return self.to_response(link)

    def toggle_link(self, user_id: int, link_id: int) -> LinkResponse:
        """Flip is_active; status follows as active/inactive."""
        link = self.link_repo.get_owned(user_id, link_id)
        if link is None:
            raise NotFoundError("Link not found", details={"link_id": link_id})

        updated = self.link_repo.set_active(link_id, not link.is_active)
        logger.info(
            f"Link {link_id} is now {'active' if updated.is_active else 'inactive'}"
        )
        return self.to_response(updated)

    def delete_link(self, user_id: int, link_id: int) -> bool:
        """Delete a link together with all of its click events."""
        link = self.link_repo.get_owned(user_id, link_id)
        if link is None:
            raise NotFoundError("Link not found", details={"link_id": link_id})

        removed = self.click_repo.delete_for_links([link_id], commit=False)
        self.link_repo.delete(link_id, commit=False)
        self.user_repo.adjust_link_count(user_id, -1, commit=False)
        self.db.commit()

        logger.info(f"Deleted link {link_id} and {removed} click events")
        return True

    def purge_expired_clicks(self, now: Optional[datetime] = None) -> int:
        """Remove click events older than CLICK_RETENTION_DAYS."""
        cutoff = (now or self.clock()) - timedelta(
            days=self.settings.CLICK_RETENTION_DAYS
        )
        deleted = self.click_repo.purge_older_than(cutoff)
        logger.info(f"Purged {deleted} click events older than {cutoff.isoformat()}")
        return deleted
