from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from linkapi.models.link import DeviceType, LinkStatus


class LinkSchema(BaseModel):
    """Link as stored, read-only view"""

    id: int = Field(..., description="Link ID")
    user_id: int = Field(..., description="Owner user ID")
    title: str = Field(..., description="Link title")
    url: str = Field(..., description="Destination URL")
    original_url: Optional[str] = Field(None, description="URL as first submitted")
    short_code: str = Field(..., description="Public short code")
    description: Optional[str] = Field(None, description="Description")
    status: LinkStatus = Field(..., description="Lifecycle state")
    is_active: bool = Field(..., description="Soft kill-switch")
    schedule_start: Optional[datetime] = Field(None, description="Schedule start")
    schedule_end: Optional[datetime] = Field(None, description="Schedule end")
    limited_access_enabled: bool = Field(False, description="Click cap enabled")
    max_clicks: Optional[int] = Field(None, description="Click cap")
    is_subscriber_only: bool = Field(False, description="Subscriber-only link")
    clicks: int = Field(0, description="Served clicks")
    views: int = Field(0, description="Served views")
    earnings: Decimal = Field(Decimal("0"), description="Attributed earnings")
    created_at: Optional[datetime] = Field(None, description="Created at")

    class Config:
        from_attributes = True


class LinkCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Link title")
    url: str = Field(..., min_length=1, description="Destination URL")
    original_url: Optional[str] = Field(None, description="URL as first submitted")
    description: Optional[str] = Field(None, max_length=1000)
    status: LinkStatus = Field(LinkStatus.ACTIVE, description="Initial state")
    schedule_start: Optional[datetime] = None
    schedule_end: Optional[datetime] = None
    limited_access_enabled: bool = False
    max_clicks: Optional[int] = Field(None, ge=1, description="Click cap")
    is_subscriber_only: bool = False

    @model_validator(mode="after")
    def _check_policy(self):
        if self.limited_access_enabled and self.max_clicks is None:
            raise ValueError("max_clicks is required when limited access is enabled")
        if (
            self.schedule_start
            and self.schedule_end
            and self.schedule_start > self.schedule_end
        ):
            raise ValueError("schedule_start must be before schedule_end")
        return self


class LinkResponse(LinkSchema):
    full_short_url: str = Field(..., description="Rendered short URL")


class AccessDenialReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    LIMIT_REACHED = "LIMIT_REACHED"


class AccessDecision(BaseModel):
    """Result of the access gate"""

    allowed: bool
    reason: Optional[AccessDenialReason] = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: AccessDenialReason) -> "AccessDecision":
        return cls(allowed=False, reason=reason)


class RequestMetadata(BaseModel):
    """What the gateway knows about an inbound redirect request"""

    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    ip_address: Optional[str] = None
    viewer_id: Optional[int] = None
    timestamp: Optional[datetime] = None


class ClickEventSchema(BaseModel):
    id: int
    link_id: int
    viewer_id: Optional[int] = None
    timestamp: datetime
    device: DeviceType
    referrer: Optional[str] = None
    ip_address: Optional[str] = None

    class Config:
        from_attributes = True


class RedirectResult(BaseModel):
    """Outcome of one redirect request"""

    success: bool = Field(..., description="Whether the link was served")
    url: Optional[str] = Field(None, description="Destination URL")
    title: Optional[str] = Field(None, description="Link title")
    reason: Optional[AccessDenialReason] = Field(None, description="Denial reason")
    message: str = Field("", description="Human readable message")


class RedirectData(BaseModel):
    url: str
    title: str


class RedirectResponse(BaseModel):
    success: bool = True
    data: RedirectData
