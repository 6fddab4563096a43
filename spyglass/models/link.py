"""
Link Data Models

Pydantic models for the site catalog.

    WebsiteLink -> SearchLink -> Link

A WebsiteLink is a cataloged site. A SearchLink adds the site's search URL
template (produced by search-form discovery). A Link adds the discovered
result-card selector and the observed response time, and is what every
live query runs against.

Usage:
    from spyglass.models.link import SearchLink

    link = SearchLink(
        title="Example Books",
        url="https://books.example.com",
        category="Books",
        starred=False,
        searchUrl="https://books.example.com/search?q={query}"
    )
    link.format_search_url("war and peace")
"""

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from urllib.parse import quote_plus

from spyglass.utils.helpers import validate_url

# Placeholder replaced by the URL-encoded query in search URL templates
SEARCH_QUERY_PLACEHOLDER = "{query}"


class WebsiteLink(BaseModel):
    """A cataloged website."""
    title: str = Field(..., description="Display name of the site", min_length=1)
    url: str = Field(..., description="Base URL of the site")
    category: str = Field(default="General", description="Catalog category (e.g. Books, Movies)")
    starred: bool = Field(default=False, description="User-pinned priority site")

    @field_validator('url')
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        """Site URL must be an absolute http(s) URL."""
        v = v.strip()
        if not validate_url(v):
            raise ValueError(f"Invalid website URL: {v!r}")
        return v

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SearchLink(WebsiteLink):
    """A website plus the template of its search results URL."""
    search_url: str = Field(
        ...,
        description=f"Search URL template with exactly one {SEARCH_QUERY_PLACEHOLDER} placeholder"
    )

    @field_validator('search_url')
    @classmethod
    def validate_search_url(cls, v: str) -> str:
        """Template must contain exactly one query placeholder and be a valid URL once filled."""
        v = v.strip()
        count = v.count(SEARCH_QUERY_PLACEHOLDER)
        if count != 1:
            raise ValueError(
                f"Search URL must contain exactly one {SEARCH_QUERY_PLACEHOLDER} placeholder, found {count}"
            )
        if not validate_url(v.replace(SEARCH_QUERY_PLACEHOLDER, "test")):
            raise ValueError(f"Invalid search URL template: {v!r}")
        return v

    def format_search_url(self, query: str) -> str:
        """Fill the template with the URL-encoded query."""
        return self.search_url.replace(SEARCH_QUERY_PLACEHOLDER, quote_plus(query))


class Link(SearchLink):
    """A searchable site: search template plus a working result-card selector."""
    card_selector: str = Field(..., description="Composite CSS selector '<parent> > <card>'", min_length=1)
    response_time: Optional[float] = Field(
        default=None,
        description="Average observed response time in milliseconds"
    )

    @classmethod
    def from_search_link(cls, search_link: SearchLink, card_selector: str, response_time: Optional[float] = None) -> "Link":
        """Promote a SearchLink once its card selector has been discovered."""
        return cls(
            **search_link.model_dump(),
            card_selector=card_selector,
            response_time=response_time,
        )

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "Example Books",
                "url": "https://books.example.com",
                "category": "Books",
                "starred": False,
                "searchUrl": "https://books.example.com/search?q={query}",
                "cardSelector": "ul.results > li.result",
                "responseTime": 412.0
            }
        }
