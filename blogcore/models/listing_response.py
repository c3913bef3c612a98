from typing import List

from pydantic import BaseModel

from blogcore.models.post import Post


class ListingResponse(BaseModel):
    root_page_id: str
    header: List[str]
    tags: List[str]
    posts_found: int
    posts: List[Post]
