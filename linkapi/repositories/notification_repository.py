from sqlalchemy.orm import Session

from linkapi.models.notification import Notification as NotificationModel
from linkapi.repositories.base import BaseRepository
from linkapi.schemas.notification import NotificationSchema


class NotificationRepository(BaseRepository[NotificationModel, NotificationSchema]):
    def __init__(self, db: Session):
        super().__init__(NotificationModel, NotificationSchema, db)
