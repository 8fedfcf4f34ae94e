from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkapi.models.base import BaseModel, BigIntPK


class LinkStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SCHEDULED = "scheduled"


class Link(BaseModel):
    """
    Monetizable short link.

    clicks/views only move through the conditional UPDATE in
    LinkRepository.try_increment_with_cap; earnings are attributed elsewhere.
    """

    __tablename__ = "links"
    __table_args__ = (
        Index("idx_links_user_created", "user_id", "created_at"),
        Index("idx_links_status", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_code: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # lifecycle
    status: Mapped[str] = mapped_column(
        String(20), default=LinkStatus.ACTIVE.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # access policy
    schedule_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    schedule_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    limited_access_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    max_clicks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_subscriber_only: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # counters
    clicks: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    views: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    earnings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )

    click_events: Mapped[list["ClickEvent"]] = relationship(
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    UNKNOWN = "unknown"


class ClickEvent(BaseModel):
    """One served redirect. Rows are never updated."""

    __tablename__ = "click_events"
    __table_args__ = (
        Index("idx_click_events_link_ts", "link_id", "timestamp"),
        Index("idx_click_events_ts", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    link_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("links.id", ondelete="CASCADE"), nullable=False
    )
    viewer_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    device: Mapped[str] = mapped_column(
        String(20), default=DeviceType.UNKNOWN.value, nullable=False
    )
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)

    link: Mapped["Link"] = relationship(back_populates="click_events")
