from typing import Any, Dict

from pydantic import BaseModel, Field

from blogcore.services.listing import ALL_TAGS, SortOrder


class ListingRequest(BaseModel):
    record_map: Dict[str, Any] = Field(
        description="Record map snapshot: {'block': {...}, 'collection': {...}}.",
    )
    root_page_id: str = Field(min_length=1)
    sort: SortOrder = "newest"
    query: str = Field(
        default="",
        max_length=200,
        description="Case-insensitive substring matched against title, description and tags.",
    )
    tag: str = Field(default=ALL_TAGS, description=f"Tag to filter on, or '{ALL_TAGS}'.")
