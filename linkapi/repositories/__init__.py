# Repository layer - data access returning pydantic schemas

from .base import BaseRepository
from .click_repository import ClickRepository
from .link_repository import LinkRepository
from .notification_repository import NotificationRepository
from .order_repository import OrderRepository
from .payout_repository import PayoutRepository
from .user_repository import UserRepository
