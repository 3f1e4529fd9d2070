import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from shortlink_app.api.urls import FETCH_FAILED, NOT_FOUND, error_response
from shortlink_app.dependencies import get_url_service
from shortlink_app.errors import MappingNotFoundError, StoreError
from shortlink_app.services.url_service import URLService
from shortlink_app.validators import is_safe_redirect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


@router.get("/{url_id}")
async def redirect_to_original_url(
    url_id: str,
    url_service: URLService = Depends(get_url_service),
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the id (counts the visit)
    2. Check the destination scheme again before navigating
    3. Redirect with 302
    """
    try:
        original_url = await url_service.resolve_mapping(url_id)
    except MappingNotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    except StoreError:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_FAILED)

    if not is_safe_redirect(original_url):
        logger.error("Refusing redirect to invalid destination: id=%s", url_id)
        return error_response(status.HTTP_502_BAD_GATEWAY, "Invalid destination URL")

    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
