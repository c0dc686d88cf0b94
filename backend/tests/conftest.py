"""
Pytest configuration and fixtures for the crypto news tests.

No test touches the network or a real browser: scrapers run against
FakeSession, which serves canned HTML keyed by URL.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.database import Base, get_db
from api.main import app


# Create an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override the get_db dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


# ============================================================
# FAKE BROWSER SESSION
# ============================================================

class FakeSession:
    """
    In-memory stand-in for BrowserSession.

    Args:
        pages: URL to HTML mapping; unknown URLs fail like a 404
        failing: URLs that always raise a navigation error
        delays: URL to seconds slept before answering
    """

    def __init__(self, pages=None, failing=(), delays=None, close_error=None):
        self.pages = dict(pages or {})
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.close_error = close_error
        self.calls = []
        self.cookies = []
        self.close_calls = 0
        self.active = 0
        self.max_active = 0

    async def fetch_soup(self, url, wait_selector=None, scroll_count=0):
        self.calls.append(('fetch', url))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            if url in self.failing:
                raise RuntimeError(f"net::ERR_CONNECTION_RESET at {url}")
            if url not in self.pages:
                raise RuntimeError(f"HTTP 404 for {url}")
            return BeautifulSoup(self.pages[url], 'html.parser')
        finally:
            self.active -= 1

    async def add_cookies(self, url, cookies, domain=None):
        self.calls.append(('cookies', url))
        self.cookies.append({'url': url, 'cookies': dict(cookies), 'domain': domain})

    async def close(self):
        self.close_calls += 1
        if self.close_error:
            raise self.close_error


class FakeSessionFactory:
    """Builds FakeSessions sharing one page set; keeps every session it made."""

    def __init__(self, pages=None, failing=(), delays=None, close_error=None):
        self.pages = pages or {}
        self.failing = failing
        self.delays = delays or {}
        self.close_error = close_error
        self.sessions = []

    def __call__(self, options=None):
        session = FakeSession(self.pages, self.failing, self.delays, self.close_error)
        self.sessions.append(session)
        return session


# ============================================================
# CANNED PAGES
# ============================================================

COINTELEGRAPH_LISTING_URL = "https://cointelegraph.com/tags/cryptocurrencies"
COINTELEGRAPH_ARTICLE_URL = "https://cointelegraph.com/news/bitcoin-hits-new-high"
COINTELEGRAPH_SECOND_URL = "https://cointelegraph.com/news/ether-staking-grows"

COINTELEGRAPH_LISTING = """
<html><head><title>Cryptocurrencies News</title></head><body>
<ul class="posts-listing__list">
  <li><article class="post-card-inline">
    <a class="post-card-inline__title-link" href="/news/bitcoin-hits-new-high">
      <span class="post-card-inline__title">Bitcoin hits a   new all-time high</span>
    </a>
    <p class="post-card-inline__text">BTC climbed past $100,000 on Monday.</p>
    <span class="post-card-inline__badge">Price Analysis</span>
    <p class="post-card-inline__author">Jane Doe</p>
    <time datetime="2025-03-18T17:16:00Z">Mar 18, 2025</time>
    <img class="lazy-image__img" data-src="/images/btc.jpg" src="data:image/gif;base64,R0lGOD">
  </article></li>
  <li><article class="post-card-inline">
    <a class="post-card-inline__title-link" href="/news/ether-staking-grows#comments">
      <span class="post-card-inline__title">Ether staking keeps growing</span>
    </a>
    <p class="post-card-inline__text">More validators joined this week.</p>
    <time>2 hours ago</time>
  </article></li>
  <li><article class="post-card-inline">
    <a class="post-card-inline__title-link" href="https://cointelegraph.com/news/bitcoin-hits-new-high">
      <span class="post-card-inline__title">Bitcoin hits a new all-time high (updated)</span>
    </a>
  </article></li>
  <li><article class="post-card-inline">
    <span class="post-card-inline__title">Sponsored card without a link</span>
  </article></li>
</ul>
</body></html>
"""

COINTELEGRAPH_ARTICLE = """
<html><body>
<h1 class="post__title">Bitcoin hits a new all-time high</h1>
<p class="post__lead">The rally continues.</p>
<div class="post-meta">
  <span class="post-meta__author-name">Jane Doe</span>
  <span class="post-meta__publish-date">Mar 18, 2025</span>
</div>
<div class="post-content">
  <p>Bitcoin rose 5% overnight.</p>
  <h2>Why it matters</h2>
  <ul><li>ETF inflows</li><li><p>Halving supply shock</p></li></ul>
  <script>trackView();</script>
</div>
<ul class="tags-list">
  <li class="tags-list__item">#Bitcoin</li>
  <li class="tags-list__item">#Markets</li>
</ul>
</body></html>
"""

COINTELEGRAPH_ARTICLE_TEXT = (
    "# Bitcoin hits a new all-time high\n\n"
    "The rally continues.\n\n"
    "Author: Jane Doe | Date: Mar 18, 2025\n\n"
    "Bitcoin rose 5% overnight.\n\n"
    "## Why it matters\n\n"
    "- ETF inflows\n\n"
    "- Halving supply shock\n\n"
    "Tags: Bitcoin, Markets"
)

WATCHERGURU_LISTING_URL = "https://watcher.guru/news/?c=2"
WATCHERGURU_ARTICLE_URL = "https://watcher.guru/news/solana-etf-approved"

WATCHERGURU_LISTING = """
<html><body>
<div class="cnvs-block-posts"><div class="cs-posts-area">
  <article class="post">
    <div class="cs-overlay-background"><img src="https://watcher.guru/img/sol.jpg"></div>
    <h2 class="cs-entry__title"><span>Solana ETF approved by regulators</span></h2>
    <div class="cs-meta-category"><ul class="post-categories"><li><a href="/news/crypto">Crypto</a></li></ul></div>
    <div class="cs-meta-date">March 18, 2025</div>
    <a class="cs-overlay-link" href="https://watcher.guru/news/solana-etf-approved"></a>
  </article>
</div></div>
</body></html>
"""

WATCHERGURU_ARTICLE = """
<html><body>
<h1 class="cs-entry__title"><span>Solana ETF approved by regulators</span></h1>
<div class="cs-entry__content-wrap"><p>The SEC approved the first Solana ETF.</p></div>
</body></html>
"""


@pytest.fixture
def site_pages():
    """Listing and article pages for cointelegraph and watcherguru."""
    return {
        COINTELEGRAPH_LISTING_URL: COINTELEGRAPH_LISTING,
        COINTELEGRAPH_ARTICLE_URL: COINTELEGRAPH_ARTICLE,
        WATCHERGURU_LISTING_URL: WATCHERGURU_LISTING,
        WATCHERGURU_ARTICLE_URL: WATCHERGURU_ARTICLE,
    }


@pytest.fixture
def fake_session(site_pages):
    return FakeSession(site_pages)


@pytest.fixture
def sample_records():
    """Raw record dicts as a scraper would produce them."""
    return [
        {
            'source': 'coindesk',
            'url': 'https://www.coindesk.com/markets/2025/03/18/bitcoin-etf-inflows',
            'title': 'Bitcoin ETF inflows hit record',
            'description': 'Inflows topped $1B.',
            'published_at': datetime(2025, 3, 18, 12, 0, tzinfo=timezone.utc),
            'fetched_at': datetime(2025, 3, 18, 13, 0, tzinfo=timezone.utc),
            'category': 'Markets',
            'author': 'Jane Doe',
            'content_type': 'Article',
            'full_content': '# Bitcoin ETF inflows hit record',
            'preview_content': 'Inflows topped $1B.',
        },
        {
            'source': 'decrypt',
            'url': 'https://decrypt.co/300000/ethereum-upgrade',
            'title': 'Ethereum upgrade goes live',
            'description': '',
            'published_at': datetime(2025, 3, 17, 9, 30, tzinfo=timezone.utc),
            'fetched_at': datetime(2025, 3, 18, 13, 0, tzinfo=timezone.utc),
        },
        {
            'source': 'coindesk',
            'url': 'https://www.coindesk.com/policy/2025/03/16/sec-rules',
            'title': 'SEC publishes new crypto rules',
            'description': 'The rules cover custody.',
            'published_at': datetime(2025, 3, 16, 8, 0, tzinfo=timezone.utc),
            'fetched_at': datetime(2025, 3, 18, 13, 0, tzinfo=timezone.utc),
        },
    ]
