import logging
from typing import Optional

from sqlalchemy.orm import Session

from linkapi.repositories.click_repository import ClickRepository
from linkapi.schemas.link import ClickEventSchema, RequestMetadata
from linkapi.utils.device import classify_device
from linkapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ClickRecorder:
    """Classifies and stores a single traffic event. Never touches link counters."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or utc_now
        self.click_repo = ClickRepository(db)

    def record(
        self, link_id: int, metadata: RequestMetadata, commit: bool = True
    ) -> ClickEventSchema:
        """Append one ClickEvent for link_id.

        Args:
            link_id: link that was served
            metadata: request details; timestamp defaults to the clock
            commit: False when the caller owns the transaction

        Returns:
            ClickEventSchema: the stored event
        """
        device = classify_device(metadata.user_agent)
        event = self.click_repo.create(
            commit=commit,
            link_id=link_id,
            viewer_id=metadata.viewer_id,
            timestamp=metadata.timestamp or self.clock(),
            device=device.value,
            user_agent=metadata.user_agent,
            referrer=metadata.referrer,
            ip_address=metadata.ip_address,
        )
        logger.debug(f"Recorded {device.value} click for link {link_id}")
        return event
