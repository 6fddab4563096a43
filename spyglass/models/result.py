"""
Result Data Models

One ranked search hit, and the durable set of hits stored per query.
Results are streamed to clients as camelCase JSON, one object per line.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Result(BaseModel):
    """
    A single ranked hit extracted from one site's results page.

    Scores are only comparable between results of the same query.
    """
    title: str = Field(..., description="Resolved result title")
    result_url: str = Field(..., description="Absolute URL of the result")
    category: str = Field(..., description="Category of the site the result came from")
    website_title: str = Field(..., description="Title of the source site")
    website_url: str = Field(..., description="Base URL of the source site")
    website_starred: bool = Field(default=False, description="Source site is user-pinned")
    score: int = Field(..., description="Fuzzy relevance score against the query")
    year: Optional[int] = Field(default=None, description="Year found in the card text")
    image_url: Optional[str] = Field(default=None, description="Absolute URL of the card image")
    alt_text: Optional[str] = Field(default=None, description="Alt text of the card image")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "War And Peace",
                "resultUrl": "https://books.example.com/book/war-and-peace",
                "category": "Books",
                "websiteTitle": "Example Books",
                "websiteUrl": "https://books.example.com",
                "websiteStarred": False,
                "score": 101,
                "year": 1869,
                "imageUrl": "https://books.example.com/covers/123.jpg",
                "altText": "War and Peace cover"
            }
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoredResultSet(BaseModel):
    """Completed result set for one query, sorted by descending score."""
    query: str = Field(..., description="Exact query string used as the cache key")
    results: List[Result] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, retention_seconds: float, now: Optional[datetime] = None) -> bool:
        """True once the set is older than the retention window."""
        now = now or utc_now()
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return (now - created_at).total_seconds() >= retention_seconds

    class Config:
        alias_generator = to_camel
        populate_by_name = True
