"""
Spyglass - Meta-search backend

Fans a query out to a catalog of third-party sites, extracts result cards
with automatically discovered CSS selectors, and streams ranked results.
"""

__version__ = "1.0.0"
