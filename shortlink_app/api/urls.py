import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from shortlink_app.dependencies import get_creator_origin, get_url_service
from shortlink_app.errors import (
    DuplicateIdError,
    InvalidInputError,
    MappingNotFoundError,
    StoreError,
)
from shortlink_app.schemas.url import ErrorResponse, URLCreate, URLCreated, URLResolved
from shortlink_app.services.url_service import URLService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/urls", tags=["urls"])

CREATE_FAILED = "Failed to create URL"
FETCH_FAILED = "Failed to fetch URL"
NOT_FOUND = "URL not found"
DUPLICATE_ID = "URL id already exists"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "",
    response_model=URLCreated,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid id or URL"},
        409: {"model": ErrorResponse, "description": "Id already exists"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
)
async def create_url(
    url_data: URLCreate,
    url_service: URLService = Depends(get_url_service),
    creator_origin: Optional[str] = Depends(get_creator_origin),
):
    """Create a short URL under a client-chosen id"""
    try:
        await url_service.create_mapping(url_data.id, url_data.url, creator_origin)
    except InvalidInputError as e:
        logger.info("Rejected create: id=%r reason=%s", url_data.id, e)
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except DuplicateIdError:
        # The client should retry with a freshly generated id
        return error_response(status.HTTP_409_CONFLICT, DUPLICATE_ID)
    except StoreError:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, CREATE_FAILED)
    return URLCreated()


@router.get(
    "/{url_id}",
    response_model=URLResolved,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown id"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
)
async def resolve_url(
    url_id: str,
    url_service: URLService = Depends(get_url_service),
):
    """Return the original URL for an id and count the visit"""
    try:
        original_url = await url_service.resolve_mapping(url_id)
    except MappingNotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    except StoreError:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_FAILED)
    return URLResolved(original_url=original_url)
