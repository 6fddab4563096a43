"""
Unit Tests for Result Extractor

Tests link choice (href uniqueness, skip keywords), title resolution,
image and year extraction, and score filtering.
"""

import pytest

from spyglass.core.config import DEFAULT_SKIP_KEYWORDS
from spyglass.models.link import WebsiteLink
from spyglass.tools.result_extractor import ResultExtractor, unique_hrefs
from spyglass.tools.selector_discovery import parse_page


@pytest.fixture
def site():
    return WebsiteLink(title="Example Books", url="https://books.example.com", category="Books", starred=True)


@pytest.fixture
def extractor():
    return ResultExtractor(skip_keywords=DEFAULT_SKIP_KEYWORDS)


def wrap(*cards: str) -> str:
    return '<div class="list">' + "".join(cards) + "</div>"


class TestLinkChoice:
    """Tests for choosing the result link of a card."""

    def test_shared_href_cards_are_skipped(self, extractor, site):
        """Two cards sharing an href plus one distinct card: only the distinct one yields."""
        html = wrap(
            '<div class="card"><a href="/shared">Shared</a></div>',
            '<div class="card"><a href="/shared">Shared</a></div>',
            '<div class="card"><a href="/books/war-and-peace">War and Peace</a></div>',
        )
        results = list(extractor.extract(html, "div.list > div.card", "war and peace", site))

        assert len(results) == 1
        assert results[0].result_url == "https://books.example.com/books/war-and-peace"
        assert results[0].title == "War And Peace"

    def test_skip_keyword_paths_ignored(self, extractor, site):
        html = wrap(
            '<div class="card"><a href="/genre/drama">Drama</a><a href="/book/dune">Dune</a></div>',
            '<div class="card"><a href="/genre/scifi">Sci-Fi</a><a href="/book/foundation">Foundation</a></div>',
        )
        results = list(extractor.extract(html, "div.list > div.card", "dune", site))

        assert [r.result_url for r in results] == [
            "https://books.example.com/book/dune",
            "https://books.example.com/book/foundation",
        ]

    def test_non_navigational_hrefs_ignored(self, extractor, site):
        html = wrap(
            '<div class="card"><a href="javascript:void(0)">Dune</a></div>',
            '<div class="card"><a href="#top">Dune</a></div>',
        )
        assert list(extractor.extract(html, "div.list > div.card", "dune", site)) == []

    def test_unresolvable_url_skips_only_that_card(self, extractor, site):
        html = wrap(
            '<div class="card"><a href="http://[bad/x">Foo</a></div>',
            '<div class="card"><a href="/b/foo-bar">Foo Bar</a></div>',
        )
        results = list(extractor.extract(html, "div.list > div.card", "foo bar", site))

        assert [r.title for r in results] == ["Foo Bar"]
        assert results[0].result_url == "https://books.example.com/b/foo-bar"

    def test_card_that_is_an_anchor(self, extractor, site):
        html = (
            '<div class="grid">'
            '<a href="/b/dune">Dune</a>'
            '<a href="/b/emma">Emma</a>'
            '</div>'
        )
        results = list(extractor.extract(html, "div.grid > a", "dune", site))
        assert [r.title for r in results] == ["Dune", "Emma"]

    def test_unique_hrefs_counts_once_per_card(self):
        doc = parse_page(wrap(
            '<div class="card"><a href="/a">A</a><a href="/a">A again</a></div>',
            '<div class="card"><a href="/b">B</a></div>',
        ))
        assert unique_hrefs(doc.select("div.card")) == {"/a", "/b"}


class TestTitleResolution:
    """Tests for title, image and year resolution."""

    def test_slug_wins_when_it_matches_better(self, extractor, site):
        html = wrap(
            '<div class="card"><a href="/games/batman-arkham-knight">Download</a></div>',
            '<div class="card"><a href="/games/other-game">Download now</a></div>',
        )
        results = list(extractor.extract(html, "div.list > div.card", "batman arkham knight", site))

        assert results[0].title == "Batman Arkham Knight"
        assert results[0].score == 101

    def test_anchor_text_kept_on_tie(self, extractor, site):
        html = wrap('<div class="card"><a href="/b/dune">Dune</a></div>')
        results = list(extractor.extract(html, "div.list > div.card", "dune", site))
        assert results[0].title == "Dune"

    def test_heading_fallback_with_image_and_year(self, extractor, site):
        html = wrap(
            '<div class="card">'
            '<a href="/b/1"><img src="/covers/1.jpg" alt="Cover"></a>'
            '<h3>dune messiah</h3><span>1969</span>'
            '</div>'
        )
        result = next(extractor.extract(html, "div.list > div.card", "dune messiah", site))

        assert result.title == "Dune Messiah"
        assert result.image_url == "https://books.example.com/covers/1.jpg"
        assert result.alt_text == "Cover"
        assert result.year == 1969

    def test_site_fields_copied(self, extractor, site):
        html = wrap('<div class="card"><a href="https://cdn.example.org/b/dune">Dune</a></div>')
        result = next(extractor.extract(html, "div.list > div.card", "dune", site))

        assert result.result_url == "https://cdn.example.org/b/dune"
        assert result.category == "Books"
        assert result.website_title == "Example Books"
        assert result.website_url == "https://books.example.com"
        assert result.website_starred is True


class TestFiltering:
    """Tests for selector errors and score filtering."""

    def test_invalid_selector_yields_nothing(self, extractor, site):
        html = wrap('<div class="card"><a href="/b/dune">Dune</a></div>')
        assert list(extractor.extract(html, "div[", "dune", site)) == []

    def test_selector_matching_nothing(self, extractor, site):
        html = wrap('<div class="card"><a href="/b/dune">Dune</a></div>')
        assert list(extractor.extract(html, "ul > li.result", "dune", site)) == []

    def test_min_score(self, site):
        html = wrap(
            '<div class="card"><a href="/b/dune">Dune</a></div>',
            '<div class="card"><a href="/b/zzz">Qwxyz</a></div>',
        )
        results = list(ResultExtractor(min_score=80).extract(html, "div.list > div.card", "dune", site))
        assert [r.title for r in results] == ["Dune"]
