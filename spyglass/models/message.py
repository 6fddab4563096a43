"""
API Message Models

Pydantic models for API requests and responses with validation.

Usage:
    from spyglass.models.message import SearchRequest

    request = SearchRequest(query="war and peace")
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional

from spyglass.models.link import Link


class SearchRequest(BaseModel):
    """Search query with input validation."""
    query: str = Field(..., description="User's search query", min_length=1, max_length=200)

    @field_validator('query')
    @classmethod
    def sanitize_query(cls, v: str) -> str:
        """Strip control characters and surrounding whitespace."""
        v = v.replace('\x00', '')

        # Control characters collapse to spaces so words stay separated
        v = ''.join(char if char.isprintable() else ' ' for char in v)

        v = ' '.join(v.split())

        if not v:
            raise ValueError("Query cannot be empty")

        return v

    class Config:
        json_schema_extra = {
            "example": {
                "query": "war and peace"
            }
        }


class RebuildCatalogRequest(BaseModel):
    """Request to rebuild the link catalog from a search links JSON file."""
    path: str = Field(..., description="Path of the JSON file holding SearchLink records", min_length=1)


class RebuildCatalogResponse(BaseModel):
    """Response from starting a catalog rebuild."""
    status: Literal["success", "error"]
    message: str = "Catalog rebuild has been initiated in the background."
    error: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "status": "success",
                "message": "Catalog rebuild has been initiated in the background."
            }
        }


class CatalogBuildReport(BaseModel):
    """Outcome of running selector discovery over a list of search links."""
    links: List[Link] = Field(default_factory=list, description="Sites with a working card selector")
    failures: Dict[str, str] = Field(default_factory=dict, description="Failed site URL -> reason")

    @property
    def success_count(self) -> int:
        return len(self.links)

    @property
    def failure_count(self) -> int:
        return len(self.failures)
