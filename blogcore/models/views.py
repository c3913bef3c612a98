from pydantic import BaseModel, Field


class ViewsResponse(BaseModel):
    views: int = Field(ge=0)


class ErrorResponse(BaseModel):
    error: str
