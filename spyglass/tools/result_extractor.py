"""
Result Extractor

Turns a search results page plus a known card selector into ranked
Result records, one per qualifying card.

Link choice:
    Navigation links (category tags, "read more", breadcrumbs) usually show up
    in several cards, while the actual result link is unique to its card. Only
    hrefs that appear in exactly one card are result-link candidates, and links
    whose parent path segment is a skip keyword (e.g. /genre/horror) are
    ignored.

Title choice:
    anchor text of the chosen link -> first h1/h2/h3 -> whole card text.
    The URL slug is scored as well, and wins when it matches the query better
    (sites with "Download" link text but descriptive URLs).

Usage:
    extractor = ResultExtractor(skip_keywords=settings.skip_keywords)
    for result in extractor.extract(html, link.card_selector, "war and peace", link):
        ...
"""

import logging
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from spyglass.models.link import WebsiteLink
from spyglass.models.result import Result
from spyglass.tools.ranking import ranking_score
from spyglass.tools.selector_discovery import Page, parse_page
from spyglass.utils.helpers import (
    clean_title,
    extract_url_slug,
    extract_year,
    normalise_string,
    path_segments,
    to_absolute_url,
)

logger = logging.getLogger(__name__)

TITLE_HEADINGS = ("h1", "h2", "h3")
IGNORED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


def _usable_href(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(IGNORED_HREF_PREFIXES):
        return None
    return href


def card_anchors(card: Tag) -> List[Tag]:
    """The card itself when it is a link, followed by its descendant links."""
    anchors = [card] if card.name == "a" else []
    anchors.extend(card.find_all("a", href=True))
    return anchors


def card_hrefs(card: Tag) -> Set[str]:
    """Distinct usable hrefs of one card."""
    hrefs = set()
    for anchor in card_anchors(card):
        href = _usable_href(anchor.get("href"))
        if href:
            hrefs.add(href)
    return hrefs


def unique_hrefs(cards: Iterable[Tag]) -> Set[str]:
    """Hrefs that occur in exactly one card (duplicates within a card count once)."""
    counts = {}
    for card in cards:
        for href in card_hrefs(card):
            counts[href] = counts.get(href, 0) + 1
    return {href for href, count in counts.items() if count == 1}


class ResultExtractor:
    """Extracts ranked results from result cards."""

    def __init__(self, skip_keywords: Optional[Iterable[str]] = None, min_score: int = 0):
        """
        Args:
            skip_keywords: Parent path segments that mark listing links
            min_score: Results scoring below this are dropped
        """
        self.skip_keywords = {k.lower() for k in (skip_keywords or [])}
        self.min_score = min_score

    def extract(self, page: Page, card_selector: str, normalised_query: str, site: WebsiteLink) -> Iterator[Result]:
        """
        Lazily yield one Result per qualifying card on the page.

        Args:
            page: Raw HTML or parsed document of the site's results page
            card_selector: Discovered card selector for the site
            normalised_query: Query after normalise_string()
            site: Site the page came from; its URL is the base for relative links
        """
        doc: BeautifulSoup = parse_page(page)
        try:
            cards = doc.select(card_selector)
        except SelectorSyntaxError as e:
            logger.warning(f"[EXTRACT] Invalid card selector '{card_selector}' for {site.url}: {e}")
            return

        unique = unique_hrefs(cards)

        for card in cards:
            result = self.extract_card(card, unique, normalised_query, site)
            if result is not None:
                yield result

    def extract_card(self, card: Tag, unique: Set[str], normalised_query: str, site: WebsiteLink) -> Optional[Result]:
        """Build the Result for one card, or None when the card has no usable result link."""
        chosen = self.choose_link(card, unique, site.url)
        if chosen is None:
            return None
        href, result_url = chosen

        title = self.resolve_title(card, href)
        score = ranking_score(normalised_query, normalise_string(title))

        slug = clean_title(extract_url_slug(result_url))
        slug_score = ranking_score(normalised_query, normalise_string(slug))
        if slug_score > score:
            title, score = slug, slug_score

        if not title or score < self.min_score:
            return None

        image_url, alt_text = self.resolve_image(card, site.url)

        return Result(
            title=title,
            result_url=result_url,
            category=site.category,
            website_title=site.title,
            website_url=site.url,
            website_starred=site.starred,
            score=score,
            year=extract_year(card.get_text(" ")),
            image_url=image_url,
            alt_text=alt_text,
        )

    def choose_link(self, card: Tag, unique: Set[str], base_url: str) -> Optional[Tuple[str, str]]:
        """
        Pick the card's result link.

        Returns:
            (raw href, absolute URL), or None to skip the card
        """
        if card.name == "a":
            href = _usable_href(card.get("href"))
            if not href or href not in unique:
                return None
            absolute = to_absolute_url(base_url, href)
            return (href, absolute) if absolute else None

        for anchor in card.find_all("a", href=True):
            href = _usable_href(anchor.get("href"))
            if not href or href not in unique:
                continue

            absolute = to_absolute_url(base_url, href)
            if absolute is None:
                logger.debug(f"[EXTRACT] Skipping card with unresolvable link '{href}' on {base_url}")
                return None

            if self.is_skipped_path(absolute):
                continue

            return href, absolute

        return None

    def is_skipped_path(self, url: str) -> bool:
        """True when the second-to-last path segment is a skip keyword."""
        segments = path_segments(url)
        return len(segments) >= 2 and segments[-2].lower() in self.skip_keywords

    def resolve_title(self, card: Tag, href: str) -> str:
        """Anchor text for the chosen href, else first heading, else the whole card text."""
        for anchor in card_anchors(card):
            if _usable_href(anchor.get("href")) == href:
                text = anchor.get_text(" ", strip=True)
                if text:
                    return clean_title(text)

        for heading in TITLE_HEADINGS:
            for element in card.find_all(heading):
                text = element.get_text(" ", strip=True)
                if text:
                    return clean_title(text)

        return clean_title(card.get_text(" ", strip=True))

    def resolve_image(self, card: Tag, base_url: str) -> Tuple[Optional[str], Optional[str]]:
        """First image of the card as (absolute src, alt text)."""
        image = card if card.name == "img" else card.find("img")
        if image is None:
            return None, None

        image_url = to_absolute_url(base_url, image.get("src"))
        alt_text = (image.get("alt") or "").strip() or None
        return image_url, alt_text
