"""Request and response bodies for the search endpoints."""
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import MAX_QUERY_LENGTH


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1, max_length=MAX_QUERY_LENGTH)
    campaign_id: Optional[UUID] = Field(default=None, alias="campaignId")

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class WebsetSearchRequest(SearchRequest):
    count: Optional[int] = Field(default=None, ge=1, le=100)


class SearchResponse(BaseModel):
    success: bool = True
    leads_found: int
    leads_skipped: int
    message: str


class WebsetSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    webset_id: str = Field(serialization_alias="websetId")
    status: str = "processing"
    message: str
