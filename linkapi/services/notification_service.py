import logging
from typing import Optional

from sqlalchemy.orm import Session

from linkapi.models.notification import NotificationType
from linkapi.repositories.notification_repository import NotificationRepository
from linkapi.schemas.notification import NotificationSchema

logger = logging.getLogger(__name__)


class NotificationService:
    """Fire-and-forget creator notifications.

    Callers have already committed their own work, so a failure here is
    logged and dropped instead of being raised back into the caller.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notification_repo = NotificationRepository(db)

    def notify(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        action_url: Optional[str] = None,
    ) -> Optional[NotificationSchema]:
        try:
            return self.notification_repo.create(
                user_id=user_id,
                type=type.value,
                title=title,
                message=message,
                action_url=action_url,
            )
        except Exception as e:
            self.db.rollback()
            logger.warning(
                f"Failed to notify user {user_id} ({type.value}: {title}): {str(e)}"
            )
            return None
