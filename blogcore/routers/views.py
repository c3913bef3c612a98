"""View counter endpoints: ``POST`` increments, ``GET`` reads."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from blogcore.config import settings
from blogcore.models.views import ErrorResponse, ViewsResponse
from blogcore.services.views import InvalidRequest, ViewStore, get_view_store, validate_page_id

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

_ALLOWED_METHODS = "GET, POST"
_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or blank page id."},
    500: {"model": ErrorResponse, "description": "The view store failed."},
}


@router.post(
    "/views/{page_id}",
    response_model=ViewsResponse,
    responses=_ERROR_RESPONSES,
    summary="Count one view of a page",
)
@limiter.limit(settings.views_rate_limit)
def increment_views(
    request: Request, page_id: str, store: ViewStore = Depends(get_view_store)
) -> ViewsResponse:
    """Add one view to *page_id* and return the new count.

    Callers decide whether a visit should count; repeat visits within a
    session should use ``GET`` instead.
    """
    page_id = validate_page_id(page_id)
    views = store.increment(page_id)
    logger.info("View counted", extra={"page_id": page_id, "views": views})
    return ViewsResponse(views=views)


@router.get(
    "/views/{page_id}",
    response_model=ViewsResponse,
    responses=_ERROR_RESPONSES,
    summary="Read the view count of a page",
)
def read_views(page_id: str, store: ViewStore = Depends(get_view_store)) -> ViewsResponse:
    """Return the view count of *page_id*, 0 if it was never viewed."""
    page_id = validate_page_id(page_id)
    return ViewsResponse(views=store.read(page_id))


@router.api_route("/views", methods=["GET", "POST"], include_in_schema=False)
@router.api_route("/views/", methods=["GET", "POST"], include_in_schema=False)
def missing_page_id() -> None:
    raise InvalidRequest("pageId must be a string")


@router.api_route(
    "/views/{page_id}",
    methods=["PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"],
    include_in_schema=False,
)
def method_not_allowed(request: Request, page_id: str) -> None:
    raise HTTPException(
        status_code=405,
        detail=f"Method {request.method} Not Allowed",
        headers={"Allow": _ALLOWED_METHODS},
    )
