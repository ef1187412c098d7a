"""
Unit tests for DetailEnricher.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from core.exceptions import FatalSourceError
from services.scraper.enricher import DetailEnricher
from services.scraper.fetcher import ResilientFetcher


class SlowFetcher:
    """Fetcher fake that tracks how many fetches overlap."""

    def __init__(self, pages, failing=(), broken=()):
        self.pages = pages
        self.failing = set(failing)
        self.broken = set(broken)
        self.in_flight = 0
        self.max_in_flight = 0
        self.urls = []

    async def fetch(self, session, url):
        self.urls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            work_id = url.rsplit("/", 1)[-1]
            if work_id in self.failing:
                raise FatalSourceError("Request failed: 404", status=404)
            if work_id in self.broken:
                raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
            return self.pages[work_id]
        finally:
            self.in_flight -= 1


class TestDetailEnricher:
    """Test suite for DetailEnricher"""

    @pytest.mark.asyncio
    async def test_enriches_all_with_bounded_concurrency(self, settings, make_entries, build_work_page, no_sleep):
        ids = ["1", "2", "3", "4", "5"]
        fetcher = SlowFetcher({i: build_work_page(author=f"w{i}", chapters=f"{i}/9") for i in ids})
        enricher = DetailEnricher(settings, fetcher, sleep=no_sleep)

        results = await enricher.enrich(AsyncMock(), make_entries(*ids), concurrency_limit=2)

        assert set(results) == set(ids)
        assert results["3"].author == "w3"
        assert results["3"].progress_label == "Chapter 3"
        assert fetcher.max_in_flight <= 2
        assert sorted(fetcher.urls) == [f"https://archiveofourown.org/works/{i}" for i in ids]
        assert no_sleep.await_count == len(ids)

    @pytest.mark.asyncio
    async def test_failure_degrades_single_entry(self, settings, make_entries, build_work_page, no_sleep):
        fetcher = SlowFetcher({"1": build_work_page(), "3": build_work_page()}, failing={"2"})
        enricher = DetailEnricher(settings, fetcher, sleep=no_sleep)

        results = await enricher.enrich(AsyncMock(), make_entries("1", "2", "3"), concurrency_limit=2)

        assert set(results) == {"1", "3"}

    @pytest.mark.asyncio
    async def test_unexpected_error_degrades_single_entry(self, settings, make_entries, build_work_page, no_sleep):
        pages = {"1": build_work_page(author="a1"), "3": build_work_page(author="a3")}
        fetcher = SlowFetcher(pages, broken={"2"})
        enricher = DetailEnricher(settings, fetcher, sleep=no_sleep)

        results = await enricher.enrich(AsyncMock(), make_entries("1", "2", "3"), concurrency_limit=2)

        assert set(results) == {"1", "3"}
        assert results["3"].author == "a3"
        assert no_sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_undecodable_item_page_is_skipped(
        self, settings, make_entries, build_work_page, fake_session_cls, fake_response_cls, no_sleep
    ):
        fetcher = ResilientFetcher(settings, sleep=no_sleep, jitter=lambda: 0.0, clock=lambda: 1700000000.0)
        bad_bytes = UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")
        session = fake_session_cls(
            get_outcomes=[
                fake_response_cls(200, text_error=bad_bytes),
                fake_response_cls(200, text=build_work_page(author="ok")),
            ]
        )
        enricher = DetailEnricher(settings, fetcher, sleep=no_sleep)

        results = await enricher.enrich(session, make_entries("1", "2"), concurrency_limit=1)

        assert set(results) == {"2"}
        assert results["2"].author == "ok"
        assert len(session.get_calls) == 2

    @pytest.mark.asyncio
    async def test_empty_input(self, settings, no_sleep):
        enricher = DetailEnricher(settings, SlowFetcher({}), sleep=no_sleep)

        assert await enricher.enrich(AsyncMock(), [], concurrency_limit=2) == {}
