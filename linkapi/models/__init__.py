# Importing this package registers every table on Base.metadata

from .base import Base, BaseModel
from .user import User, PaymentProviderAccount, PaymentProvider
from .link import Link, LinkStatus, ClickEvent, DeviceType
from .ledger import (
    Order,
    OrderPaymentStatus,
    Payout,
    PayoutStatus,
    RESERVED_PAYOUT_STATUSES,
)
from .notification import Notification, NotificationType

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "PaymentProviderAccount",
    "PaymentProvider",
    "Link",
    "LinkStatus",
    "ClickEvent",
    "DeviceType",
    "Order",
    "OrderPaymentStatus",
    "Payout",
    "PayoutStatus",
    "RESERVED_PAYOUT_STATUSES",
    "Notification",
    "NotificationType",
]
