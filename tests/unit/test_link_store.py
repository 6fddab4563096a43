"""
Unit Tests for Link Store

Tests the SQLite-backed site catalog.
"""

import pytest

from spyglass.services.link_store import LinkStore


class TestLinkStore:
    """Tests for LinkStore."""

    @pytest.mark.asyncio
    async def test_get_all_orders_by_response_time(self, make_link):
        store = LinkStore()
        await store.upsert_many([
            make_link("slow.example.com", response_time=900.0),
            make_link("unknown.example.com", response_time=None),
            make_link("fast.example.com", response_time=100.0),
        ])

        links = await store.get_all()

        assert [link.url for link in links] == [
            "https://fast.example.com",
            "https://slow.example.com",
            "https://unknown.example.com",
        ]
        store.close()

    @pytest.mark.asyncio
    async def test_round_trip_fields(self, sample_link):
        store = LinkStore()
        await store.upsert_many([sample_link])

        stored = await store.get(sample_link.url)

        assert stored == sample_link
        store.close()

    @pytest.mark.asyncio
    async def test_upsert_updates_existing(self, make_link):
        store = LinkStore()
        await store.upsert_many([make_link("a.example.com", card_selector="ul > li")])
        await store.upsert_many([make_link("a.example.com", card_selector="ol > li.hit")])

        assert await store.count() == 1
        assert (await store.get("https://a.example.com")).card_selector == "ol > li.hit"
        store.close()

    @pytest.mark.asyncio
    async def test_upsert_nothing(self):
        store = LinkStore()
        assert await store.upsert_many([]) == 0
        store.close()

    @pytest.mark.asyncio
    async def test_remove(self, make_link):
        store = LinkStore()
        await store.upsert_many([make_link("a.example.com"), make_link("b.example.com")])

        assert await store.remove("https://a.example.com") is True
        assert await store.remove("https://a.example.com") is False
        assert await store.get("https://a.example.com") is None
        assert await store.remove_all() == 1
        assert await store.get_all() == []
        store.close()

    @pytest.mark.asyncio
    async def test_persists_to_file(self, tmp_path, sample_link):
        db_path = str(tmp_path / "data" / "links.db")
        store = LinkStore(db_path)
        await store.upsert_many([sample_link])
        store.close()

        reopened = LinkStore(db_path)
        assert await reopened.count() == 1
        reopened.close()
