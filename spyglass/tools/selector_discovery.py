"""
Selector Discovery - Two-Tier Result Card Detection

Infers the CSS selector of the repeating "result cards" on an unknown
search results page, with no per-site configuration.

Tier 1 (Differential): compares result pages against a page for a query
that is guaranteed to return nothing. Every element path present on the
empty page is page chrome (header, nav, footer, sidebars) and is
blacklisted. The best remaining repeating sibling group is the card list.
Two differently-queried result pages must agree on the card container.

Tier 2 (Frequency): baseline-free fallback. Scores every repeating
sibling group by repetition, richness, links and images, preferring
shallow containers.

Usage:
    from spyglass.tools.selector_discovery import SelectorDiscovery

    discovery = SelectorDiscovery()
    result = discovery.discover(no_results_html, [results_html_1, results_html_2])
    if result.success:
        print(result.selector)   # e.g. "ul.results > li.card"
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from spyglass.models.discovery import DiscoveryResult
from spyglass.tools.element_signature import (
    child_shape_key,
    common_card_selector,
    element_children,
    element_depth,
    element_signature,
    full_path_signature,
)

logger = logging.getLogger(__name__)

Page = Union[str, bytes, BeautifulSoup]

# Elements that can repeat but never hold a result
NON_CONTENT_TAGS = {
    "head", "script", "style", "noscript", "template", "meta", "link",
    "br", "hr", "option", "optgroup", "input", "source", "track", "param",
}

PAGINATION_KEYWORDS = {
    "next", "next page", "next results", "more", "more results",
    "prev", "previous", "last", "first",
    "›", "‹", "»", "«", ">", "<",
}
PAGINATION_MAX_TEXT_LENGTH = 25
_INTEGER_RE = re.compile(r"[+-]?\d+")

# Scoring weights
REPETITION_WEIGHT = 10
CHILD_WEIGHT = 5
TEXT_LENGTH_CAP = 500
TEXT_LENGTH_DIVISOR = 5
ANCHOR_BONUS = 25
IMAGE_BONUS = 10
DEPTH_PENALTY = 3


@dataclass
class RepeatingPattern:
    """A group of >= 2 sibling elements sharing the same tag and child shape."""
    parent: Tag
    child_signature: str
    elements: List[Tag] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.elements)

    @property
    def representative(self) -> Tag:
        return self.elements[0]

    @property
    def parent_signature(self) -> str:
        return element_signature(self.parent)


def parse_page(page: Page) -> BeautifulSoup:
    """Parse raw HTML with lxml; already-parsed documents pass through."""
    if isinstance(page, BeautifulSoup):
        return page
    return BeautifulSoup(page, "lxml")


def is_pagination_card(element: Tag) -> bool:
    """
    Heuristic: short text that is a page number or a paging keyword.

    Rule 1: pagination items have short, non-empty text.
    Rule 2: a bare integer is the strongest signal.
    Rule 3: common paging words and arrows.
    """
    text = element.get_text().strip()
    if not text or len(text) > PAGINATION_MAX_TEXT_LENGTH:
        return False

    if _INTEGER_RE.fullmatch(text):
        return True

    return text.lower() in PAGINATION_KEYWORDS


def is_pagination_pattern(pattern: RepeatingPattern) -> bool:
    """A group is a pager if any of its elements looks like a page link."""
    return any(is_pagination_card(element) for element in pattern.elements)


def complexity_score(element: Tag) -> int:
    """
    How content-rich an element is.

    A divider has 0-1 children and little text; a content card has several
    children and real text. Text length is capped so a single wall of text
    cannot dominate.
    """
    child_count = len(element_children(element))
    text_length = len(element.get_text().strip())
    return child_count * CHILD_WEIGHT + min(text_length, TEXT_LENGTH_CAP) // TEXT_LENGTH_DIVISOR


def contains_anchor(element: Tag) -> bool:
    return element.name == "a" or element.find("a") is not None


def contains_linked_anchor(element: Tag) -> bool:
    if element.name == "a" and element.get("href"):
        return True
    return element.find("a", href=True) is not None


def contains_image(element: Tag) -> bool:
    return element.name == "img" or element.find("img") is not None


def _content_root(doc: BeautifulSoup) -> Tag:
    return doc.body or doc


def find_repeating_patterns(doc: BeautifulSoup) -> List[RepeatingPattern]:
    """
    Every group of >= 2 siblings sharing tag and child shape, in document order.

    Children are grouped per parent by (tag, child tag names), which
    tolerates interstitial elements such as ads between cards.
    """
    patterns: List[RepeatingPattern] = []
    root = _content_root(doc)
    parents = [root] + root.find_all(True)

    for parent in parents:
        children = element_children(parent)
        if len(children) < 2:
            continue

        groups: Dict[Tuple[str, str], List[Tag]] = {}
        for child in children:
            if child.name in NON_CONTENT_TAGS:
                continue
            key = (child.name, child_shape_key(child))
            groups.setdefault(key, []).append(child)

        for (_, shape), elements in groups.items():
            if len(elements) >= 2:
                patterns.append(RepeatingPattern(parent=parent, child_signature=shape, elements=elements))

    return patterns


def build_blacklist(doc: BeautifulSoup) -> Set[str]:
    """Full-path signatures of every element on a no-results page."""
    return {
        signature
        for signature in (full_path_signature(el) for el in doc.find_all(True))
        if signature
    }


class SelectorDiscovery:
    """Infers result-card selectors from sample search pages."""

    def differential_score(self, pattern: RepeatingPattern) -> int:
        return pattern.count * REPETITION_WEIGHT + complexity_score(pattern.representative)

    def frequency_score(self, pattern: RepeatingPattern) -> int:
        representative = pattern.representative
        score = pattern.count * REPETITION_WEIGHT + complexity_score(representative)
        if contains_linked_anchor(representative):
            score += ANCHOR_BONUS
        if contains_image(representative):
            score += IMAGE_BONUS
        score -= DEPTH_PENALTY * element_depth(pattern.parent)
        return score

    def best_differential_pattern(self, doc: BeautifulSoup, blacklist: Set[str]) -> Optional[RepeatingPattern]:
        """Highest scoring repeating pattern that is not chrome, not pagination and carries a link."""
        best: Optional[RepeatingPattern] = None
        best_score = None

        for pattern in find_repeating_patterns(doc):
            representative = pattern.representative
            if full_path_signature(representative) in blacklist:
                continue
            if not contains_anchor(representative):
                continue
            if is_pagination_pattern(pattern):
                continue

            score = self.differential_score(pattern)
            if best_score is None or score > best_score:
                best, best_score = pattern, score

        return best

    def best_frequency_pattern(self, doc: BeautifulSoup) -> Optional[RepeatingPattern]:
        """Highest positive-scoring repeating pattern that is not pagination."""
        best: Optional[RepeatingPattern] = None
        best_score = 0

        for pattern in find_repeating_patterns(doc):
            if is_pagination_pattern(pattern):
                continue

            score = self.frequency_score(pattern)
            if score > best_score:
                best, best_score = pattern, score

        return best

    def differential(self, no_results_page: Page, result_pages: Sequence[Page]) -> DiscoveryResult:
        """Tier 1: subtract the no-results page, require agreement across result pages."""
        if not result_pages:
            return DiscoveryResult.failure("No result pages supplied", tier="differential")

        blacklist = build_blacklist(parse_page(no_results_page))
        docs = [parse_page(page) for page in result_pages[:2]]

        patterns: List[RepeatingPattern] = []
        for index, doc in enumerate(docs, start=1):
            pattern = self.best_differential_pattern(doc, blacklist)
            if pattern is None:
                return DiscoveryResult.failure(
                    f"No repeating pattern survived filtering on result page {index}",
                    tier="differential"
                )
            patterns.append(pattern)

        parent_signatures = {p.parent_signature for p in patterns}
        if len(parent_signatures) > 1:
            return DiscoveryResult.failure(
                f"Inconsistent card containers across result pages: {sorted(parent_signatures)}",
                tier="differential"
            )

        elements = [el for p in patterns for el in p.elements]
        selector = common_card_selector(patterns[0].parent_signature, elements)
        return self._verified(selector, docs[0], "differential")

    def frequency(self, result_pages: Sequence[Page]) -> DiscoveryResult:
        """Tier 2: content-heuristic scoring, first result page that yields a pattern wins."""
        if not result_pages:
            return DiscoveryResult.failure("No result pages supplied", tier="frequency")

        for page in result_pages:
            doc = parse_page(page)
            pattern = self.best_frequency_pattern(doc)
            if pattern is None:
                continue
            selector = common_card_selector(pattern.parent_signature, pattern.elements)
            result = self._verified(selector, doc, "frequency")
            if result.success:
                return result

        return DiscoveryResult.failure("No positively scored repeating pattern found", tier="frequency")

    def discover(self, no_results_page: Optional[Page], result_pages: Sequence[Page]) -> DiscoveryResult:
        """
        Run differential discovery when a baseline exists, falling back to frequency analysis.

        Args:
            no_results_page: Page for a query guaranteed to return nothing, or None
            result_pages: One or two pages for queries that return results

        Returns:
            DiscoveryResult with the selector, or the reason both tiers failed
        """
        result_pages = [parse_page(page) for page in result_pages]
        differential_error = None

        if no_results_page is not None:
            result = self.differential(no_results_page, result_pages)
            if result.success:
                logger.info(f"[DISCOVERY] Differential tier found '{result.selector}'")
                return result
            differential_error = result.error
            logger.info(f"[DISCOVERY] Differential tier failed ({result.error}), trying frequency analysis")

        result = self.frequency(result_pages)
        if result.success:
            logger.info(f"[DISCOVERY] Frequency tier found '{result.selector}'")
            return result

        error = result.error
        if differential_error:
            error = f"differential: {differential_error}; frequency: {result.error}"
        logger.info(f"[DISCOVERY] All tiers failed: {error}")
        return DiscoveryResult.failure(error)

    def _verified(self, selector: str, doc: BeautifulSoup, tier: str) -> DiscoveryResult:
        """Reject selectors that do not parse or no longer match a repeating group."""
        try:
            matches = doc.select(selector)
        except SelectorSyntaxError as e:
            return DiscoveryResult.failure(f"Generated selector '{selector}' is invalid: {e}", tier=tier)

        if len(matches) < 2:
            return DiscoveryResult.failure(
                f"Generated selector '{selector}' matched {len(matches)} element(s)",
                tier=tier
            )
        return DiscoveryResult.ok(selector, tier=tier)
