"""
Tests for the shared extraction flow in BaseScraper.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from scrapers.base import BaseScraper, ArticleSelectors
from scrapers.config import get_site_config
from scrapers.exceptions import ListingFetchError, StrategyInitializationError
from scrapers.sites import CoinTelegraphScraper, WatcherGuruScraper

from conftest import (
    FakeSession,
    COINTELEGRAPH_LISTING_URL,
    COINTELEGRAPH_ARTICLE_URL,
    COINTELEGRAPH_SECOND_URL,
    COINTELEGRAPH_ARTICLE_TEXT,
    WATCHERGURU_ARTICLE_URL,
)


class TestExtract:
    """Test the listing + article extraction flow."""

    @pytest.mark.asyncio
    async def test_records_follow_listing_order(self, fake_session):
        """Records come back in DOM order with duplicates and incomplete cards removed."""
        scraper = CoinTelegraphScraper(fake_session)
        records = await scraper.extract()

        assert [r.url for r in records] == [COINTELEGRAPH_ARTICLE_URL, COINTELEGRAPH_SECOND_URL]
        assert len({r.url for r in records}) == len(records)
        assert all(r.source == 'cointelegraph' for r in records)

    @pytest.mark.asyncio
    async def test_full_article_record(self, fake_session):
        """A successful article fetch fills full_content and keeps listing fields."""
        started = datetime.now(timezone.utc)
        records = await CoinTelegraphScraper(fake_session).extract()
        record = records[0]

        assert record.title == "Bitcoin hits a new all-time high"
        assert record.description == "BTC climbed past $100,000 on Monday."
        assert record.category == "Price Analysis"
        assert record.author == "Jane Doe"
        assert record.content_type == "Article"
        assert record.published_at == datetime(2025, 3, 18, 17, 16, tzinfo=timezone.utc)
        assert record.fetched_at >= started
        assert record.full_content == COINTELEGRAPH_ARTICLE_TEXT
        assert record.preview_content == record.description

    @pytest.mark.asyncio
    async def test_failed_article_degrades_to_preview(self, fake_session):
        """An article page that cannot load keeps the record as preview-only."""
        records = await CoinTelegraphScraper(fake_session).extract()
        record = records[1]

        assert record.full_content is None
        assert record.title == "Ether staking keeps growing"
        assert record.url == COINTELEGRAPH_SECOND_URL
        assert record.preview_content == "More validators joined this week."

    @pytest.mark.asyncio
    async def test_relative_dates_use_fetch_time(self, fake_session):
        records = await CoinTelegraphScraper(fake_session).extract()
        record = records[1]

        assert record.fetched_at - record.published_at == timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_fetched_at_is_stamped_after_article_fetch(self, fake_session):
        """Each record's fetch time is taken when that record is built."""
        records = await CoinTelegraphScraper(fake_session).extract()

        assert records[0].fetched_at <= records[1].fetched_at

    @pytest.mark.asyncio
    async def test_scroll_count_is_bounded(self, fake_session):
        scraper = CoinTelegraphScraper(fake_session, max_scrolls=1)
        assert scraper.scroll_count == 1

        await scraper.extract()

        assert fake_session.calls[0] == ('fetch', COINTELEGRAPH_LISTING_URL)

    @pytest.mark.asyncio
    async def test_max_items_limits_article_fetches(self, fake_session):
        records = await CoinTelegraphScraper(fake_session, max_items=1).extract()

        assert len(records) == 1
        fetched = [url for kind, url in fake_session.calls if kind == 'fetch']
        assert fetched == [COINTELEGRAPH_LISTING_URL, COINTELEGRAPH_ARTICLE_URL]

    @pytest.mark.asyncio
    async def test_dropped_cards_are_logged(self, fake_session, caplog):
        parent = logging.getLogger("tests.extract")
        with caplog.at_level(logging.WARNING, logger="tests.extract"):
            await CoinTelegraphScraper(fake_session, logger=parent).extract()

        dropped = [r for r in caplog.records if "missing url" in r.getMessage()]
        assert len(dropped) == 1
        assert dropped[0].name == "tests.extract.cointelegraph"

    @pytest.mark.asyncio
    async def test_extract_repeats_network_work(self, fake_session):
        """Nothing is cached between calls."""
        scraper = WatcherGuruScraper(fake_session)
        first = await scraper.extract()
        second = await scraper.extract()

        assert [r.url for r in first] == [r.url for r in second] == [WATCHERGURU_ARTICLE_URL]
        assert len(fake_session.calls) == 4


class TestListingFailures:
    """Listing failures are fatal for the run."""

    @pytest.mark.asyncio
    async def test_navigation_error_raises_listing_fetch_error(self):
        session = FakeSession(failing={COINTELEGRAPH_LISTING_URL})

        with pytest.raises(ListingFetchError) as exc_info:
            await CoinTelegraphScraper(session).extract()

        assert exc_info.value.site == 'cointelegraph'
        assert exc_info.value.stage == 'listing'
        assert "ERR_CONNECTION_RESET" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_blocked_listing_raises(self):
        session = FakeSession({
            COINTELEGRAPH_LISTING_URL: (
                "<html><head><title>Attention Required! | Cloudflare</title></head>"
                "<body><p>Sorry, you have been blocked</p></body></html>"
            ),
        })

        with pytest.raises(ListingFetchError, match="blocks automation"):
            await CoinTelegraphScraper(session).extract()

    @pytest.mark.asyncio
    async def test_missing_container_scans_whole_page(self):
        """A renamed container still yields the cards found on the page."""
        session = FakeSession({
            COINTELEGRAPH_LISTING_URL: """
                <html><body><section class="renamed">
                  <article class="post-card-inline">
                    <a class="post-card-inline__title-link" href="/news/one">
                      <span class="post-card-inline__title">Only card on the page</span>
                    </a>
                  </article>
                </section></body></html>
            """,
        })

        records = await CoinTelegraphScraper(session).extract()

        assert [r.url for r in records] == ["https://cointelegraph.com/news/one"]

    @pytest.mark.asyncio
    async def test_out_of_range_date_keeps_the_card(self):
        """A card with an impossible relative date still yields a record."""
        session = FakeSession({
            COINTELEGRAPH_LISTING_URL: """
                <html><body><ul class="posts-listing__list">
                  <li><article class="post-card-inline">
                    <a class="post-card-inline__title-link" href="/news/far-past">
                      <span class="post-card-inline__title">Card from the far past</span>
                    </a>
                    <time>999999999999 days ago</time>
                  </article></li>
                  <li><article class="post-card-inline">
                    <a class="post-card-inline__title-link" href="/news/recent">
                      <span class="post-card-inline__title">Recent card</span>
                    </a>
                    <time>2 hours ago</time>
                  </article></li>
                </ul></body></html>
            """,
        })

        records = await CoinTelegraphScraper(session).extract()

        assert [r.url for r in records] == [
            "https://cointelegraph.com/news/far-past",
            "https://cointelegraph.com/news/recent",
        ]
        assert records[0].published_at == records[0].fetched_at
        assert records[1].fetched_at - records[1].published_at == timedelta(hours=2)


class TestInitialization:
    """Test scraper construction."""

    def test_invalid_selector_fails_initialization(self, fake_session):
        config = get_site_config('cointelegraph')
        broken = replace(config, article=ArticleSelectors(content='div[', title='h1'))

        with pytest.raises(StrategyInitializationError) as exc_info:
            BaseScraper(broken, fake_session)

        assert exc_info.value.site == 'cointelegraph'
        assert 'article.content' in str(exc_info.value)

    def test_missing_session_fails_initialization(self):
        with pytest.raises(StrategyInitializationError):
            CoinTelegraphScraper(None)

    def test_logger_is_child_of_caller_logger(self, fake_session):
        parent = logging.getLogger("tests.parent")
        scraper = CoinTelegraphScraper(fake_session, logger=parent)

        assert scraper.logger.name == "tests.parent.cointelegraph"

    def test_default_logger_name(self, fake_session):
        assert CoinTelegraphScraper(fake_session).logger.name == "scraper.cointelegraph"
