"""
Discovery Result Model

Standardized outcome of a selector discovery run. Discovery never raises
for "no pattern found"; callers check `success` and handle the failure.

Example:
    # Success case
    result = DiscoveryResult.ok("ul.results > li.card", tier="differential")

    # Failure case
    result = DiscoveryResult.failure("No repeating pattern survived filtering")
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

DiscoveryTier = Literal["differential", "frequency"]


class DiscoveryResult(BaseModel):
    """Outcome of inferring a result-card selector for one site."""

    success: bool = Field(description="Whether a card selector was found")
    selector: Optional[str] = Field(default=None, description="Composite CSS selector '<parent> > <card>'")
    tier: Optional[DiscoveryTier] = Field(default=None, description="Tier that produced the selector")
    error: Optional[str] = Field(default=None, description="Why discovery failed")

    @classmethod
    def ok(cls, selector: str, tier: DiscoveryTier) -> "DiscoveryResult":
        return cls(success=True, selector=selector, tier=tier)

    @classmethod
    def failure(cls, error: str, tier: Optional[DiscoveryTier] = None) -> "DiscoveryResult":
        return cls(success=False, error=error, tier=tier)

    def __str__(self) -> str:
        """String representation for logging."""
        if self.success:
            return f"DiscoveryResult(success=True, tier={self.tier}, selector='{self.selector}')"
        return f"DiscoveryResult(success=False, error='{self.error}')"
