"""
Public short-link resolution

- GET /{short_code}: 302 to the destination
- GET /api/v1/links/r/{short_code}: the same decision as JSON

Both paths run the full redirect gateway, so either one counts the click.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import RedirectResponse as HTTPRedirect

from linkapi.core.auth_middleware import get_current_user_id_optional
from linkapi.core.exceptions import (
    LinkLimitReachedError,
    LinkUnavailableError,
    NotFoundError,
)
from linkapi.deps import get_redirect_service
from linkapi.schemas.link import (
    AccessDenialReason,
    RedirectData,
    RedirectResponse,
    RedirectResult,
    RequestMetadata,
)
from linkapi.services.redirect_service import RedirectService

logger = logging.getLogger(__name__)

public_router = APIRouter(tags=["redirect"])
router = APIRouter(prefix="/links", tags=["redirect"])


def request_metadata(request: Request, viewer_id: Optional[int]) -> RequestMetadata:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None

    return RequestMetadata(
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
        ip_address=ip_address,
        viewer_id=viewer_id,
    )


def raise_for_denial(result: RedirectResult) -> None:
    if result.success:
        return
    if result.reason == AccessDenialReason.LIMIT_REACHED:
        raise LinkLimitReachedError(result.message)
    if result.reason == AccessDenialReason.UNAVAILABLE:
        raise LinkUnavailableError(result.message)
    raise NotFoundError(result.message)


@public_router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    response_class=HTTPRedirect,
)
def follow_short_link(
    request: Request,
    short_code: str = Path(..., min_length=1, max_length=32),
    viewer_id: Optional[int] = Depends(get_current_user_id_optional),
    redirect_service: RedirectService = Depends(get_redirect_service),
):
    """
    Resolve a short code and redirect the browser.

    HTTP Status:
        302: served
        404: unknown short code, or link switched off
        410: click cap reached
    """
    result = redirect_service.handle(short_code, request_metadata(request, viewer_id))
    raise_for_denial(result)
    return HTTPRedirect(url=result.url, status_code=status.HTTP_302_FOUND)


@router.get("/r/{short_code}", response_model=RedirectResponse)
def resolve_short_link(
    request: Request,
    short_code: str = Path(..., min_length=1, max_length=32),
    viewer_id: Optional[int] = Depends(get_current_user_id_optional),
    redirect_service: RedirectService = Depends(get_redirect_service),
) -> RedirectResponse:
    """Same as the public redirect but returns {url, title} for the frontend."""
    result = redirect_service.handle(short_code, request_metadata(request, viewer_id))
    raise_for_denial(result)
    return RedirectResponse(data=RedirectData(url=result.url, title=result.title))
