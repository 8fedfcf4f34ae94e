from fastapi import APIRouter, Depends, Path, status

from linkapi.core.auth_middleware import get_current_user_id
from linkapi.deps import get_link_service
from linkapi.schemas.link import LinkCreateRequest, LinkResponse
from linkapi.services.link_service import LinkService

router = APIRouter(prefix="/links", tags=["links"])


@router.post("/", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
def create_link(
    request: LinkCreateRequest,
    user_id: int = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    return link_service.create_link(user_id, request)


@router.get("/{link_id}", response_model=LinkResponse)
def get_link(
    link_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    return link_service.get_link(user_id, link_id)


@router.patch("/{link_id}/toggle", response_model=LinkResponse)
def toggle_link(
    link_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    """Switch a link on or off."""
    return link_service.toggle_link(user_id, link_id)


@router.delete("/{link_id}")
def delete_link(
    link_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
) -> dict:
    """Delete a link and every click recorded for it."""
    link_service.delete_link(user_id, link_id)
    return {"success": True, "message": "Link deleted"}
