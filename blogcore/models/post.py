from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Post(BaseModel):
    """One database page of the root page, summarised for listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str = Field(min_length=1)
    published_date: Optional[int] = Field(
        default=None,
        alias="publishedDate",
        description="Publication time in epoch milliseconds.",
    )
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
