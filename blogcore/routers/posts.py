"""Post listing endpoint: extracts posts from a record map and lists them."""

import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from blogcore.config import settings
from blogcore.models.listing_request import ListingRequest
from blogcore.models.listing_response import ListingResponse
from blogcore.services.extractor import extract_page
from blogcore.services.listing import collect_tags, derive_listing
from blogcore.services.reader import PageGraph

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/posts",
    response_model=ListingResponse,
    summary="List the posts of a Notion page",
    description=(
        "Walks the supplied record map, collects every database page below "
        "`root_page_id` and returns them filtered by `tag` and `query` and "
        "sorted by `sort` (`newest`, `oldest` or `title`).  Undated posts "
        "sort last under `newest` and first under `oldest`.\n\n"
        "A record map without the root page yields an empty listing."
    ),
)
@limiter.limit(settings.posts_rate_limit)
async def list_posts(request: Request, body: ListingRequest) -> ListingResponse:
    logger.info(
        "Listing request received",
        extra={"root_page_id": body.root_page_id, "sort": body.sort, "tag": body.tag},
    )

    page = extract_page(PageGraph(body.record_map), body.root_page_id)
    posts = derive_listing(page.posts, body.sort, body.query, body.tag)

    return ListingResponse(
        root_page_id=body.root_page_id,
        header=page.header,
        tags=collect_tags(page.posts),
        posts_found=len(posts),
        posts=posts,
    )
