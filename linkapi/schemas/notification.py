from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from linkapi.models.notification import NotificationType


class NotificationSchema(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
