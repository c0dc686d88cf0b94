"""
Base classes for the crypto news scraper system.

This module defines the selector configuration, the canonical news record
and the BaseScraper that every site-specific scraper builds on.
"""

from typing import List, Dict, Optional, Any, Iterator, Tuple
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from urllib.parse import urlparse
import logging

import soupsieve
from bs4 import BeautifulSoup, Tag

from .exceptions import (
    ArticleFetchError,
    ListingFetchError,
    StrategyInitializationError,
)

logger = logging.getLogger(__name__)


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for colorized logging."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    GRAY = '\033[90m'

    @staticmethod
    def green(text):
        return f"{Colors.GREEN}{text}{Colors.RESET}"

    @staticmethod
    def yellow(text):
        return f"{Colors.YELLOW}{text}{Colors.RESET}"

    @staticmethod
    def red(text):
        return f"{Colors.RED}{text}{Colors.RESET}"

    @staticmethod
    def gray(text):
        return f"{Colors.GRAY}{text}{Colors.RESET}"

    @staticmethod
    def bold(text):
        return f"{Colors.BOLD}{text}{Colors.RESET}"


@dataclass(frozen=True)
class ListingSelectors:
    """CSS selectors used on a site's listing page."""
    container: str                          # Wraps the list of news cards
    item: str                               # One news card
    title: str
    link: str                               # Element carrying the article href
    description: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None              # `datetime` attribute preferred over text
    image: Optional[str] = None
    content_type: Optional[str] = None      # Badge holding the content type label
    video_indicator: Optional[str] = None   # Presence marks the card as a video


@dataclass(frozen=True)
class ArticleSelectors:
    """CSS selectors used on an individual article page."""
    content: str
    title: str
    subtitle: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    tags: Optional[str] = None


@dataclass(frozen=True)
class SiteConfig:
    """Configuration for one news source. Read-only after construction."""
    site_id: str                            # Identifier used by the CLI/API (e.g., 'coindesk')
    name: str                               # Display name
    base_url: str                           # Listing entry URL
    listing: ListingSelectors
    article: ArticleSelectors
    scroll_count: int = 0                   # Scrolls needed to trigger lazy loading
    content_type: str = "Article"           # Default classifier for records
    cookies: Tuple[Tuple[str, str], ...] = ()  # Set on the session before the listing loads
    enabled: bool = True

    @property
    def origin(self) -> str:
        """Scheme and host of the entry URL, used to absolutize links."""
        parsed = urlparse(self.base_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def iter_selectors(self) -> Iterator[Tuple[str, str]]:
        """Yield (field name, selector) for every configured selector."""
        for group_name, group in (('listing', self.listing), ('article', self.article)):
            for f in fields(group):
                value = getattr(group, f.name)
                if value:
                    yield f"{group_name}.{f.name}", value

    def validate(self):
        """
        Compile every selector once.

        Raises:
            ValueError: If a selector is not a valid CSS query
        """
        if not self.site_id:
            raise ValueError("site_id must not be empty")
        if not urlparse(self.base_url).netloc:
            raise ValueError(f"base_url is not absolute: {self.base_url!r}")
        for name, selector in self.iter_selectors():
            try:
                soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as e:
                raise ValueError(f"Invalid selector for {name}: {selector!r} ({e})") from e


@dataclass
class ListingStub:
    """A candidate article discovered on the listing page."""
    title: str
    url: str
    position: int
    description: str = ""
    category: Optional[str] = None
    author: Optional[str] = None
    published: Optional[str] = None
    image_url: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class ArticleContent:
    """Fields extracted from an article page."""
    title: str = ""
    subtitle: str = ""
    author: Optional[str] = None
    published: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    blocks: List[str] = field(default_factory=list)   # Rendered paragraphs, headers, list items
    text: str = ""                                    # Full rendered article


@dataclass
class ArticleResult:
    """
    Outcome of the best-effort article fetch.

    Exactly one of `content` and `error` is set. A failed fetch keeps the
    record alive with listing-derived fields only.
    """
    url: str
    content: Optional[ArticleContent] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None


@dataclass
class NewsRecord:
    """Canonical news item produced by every scraper."""
    source: str
    url: str
    title: str
    description: str
    published_at: datetime
    fetched_at: datetime
    category: Optional[str] = None
    author: Optional[str] = None
    content_type: Optional[str] = None
    full_content: Optional[str] = None
    preview_content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'url': self.url,
            'title': self.title,
            'description': self.description,
            'published_at': self.published_at.isoformat(),
            'fetched_at': self.fetched_at.isoformat(),
            'category': self.category,
            'author': self.author,
            'content_type': self.content_type,
            'full_content': self.full_content,
            'preview_content': self.preview_content,
        }


NEWS_RECORD_FIELDS = tuple(f.name for f in fields(NewsRecord))


class BaseScraper:
    """
    Base class for all site scrapers.

    The default implementation covers the whole extraction flow driven by
    the site's SiteConfig:

    1. Load the listing page (fatal on failure)
    2. Turn listing cards into ListingStub objects
    3. Fetch each article page (non-fatal on failure)
    4. Build and sanitize one NewsRecord per stub

    Site modules override the hooks below for their quirks:
    - prepare_session(): cookies or other setup before the listing loads
    - parse_listing() / parse_listing_item(): custom listing layouts
    - classify_content(): content type detection
    - parse_article(): custom article layouts
    """

    site_key: str = ""

    def __init__(
        self,
        config: SiteConfig,
        session,
        logger: Optional[logging.Logger] = None,
        max_items: int = 10,
        max_scrolls: int = 5,
    ):
        """
        Initialize the scraper.

        Args:
            config: Site configuration
            session: Browser session providing fetch_soup() and add_cookies()
            logger: Parent logger; the scraper logs on its `site_id` child
            max_items: Maximum listing stubs processed per run
            max_scrolls: Upper bound for the site's scroll_count

        Raises:
            StrategyInitializationError: If the configuration is invalid
        """
        try:
            config.validate()
        except ValueError as e:
            raise StrategyInitializationError(str(e), site=config.site_id) from e
        if session is None:
            raise StrategyInitializationError("No browser session supplied", site=config.site_id)

        self.config = config
        self.session = session
        self.max_items = max(0, max_items)
        self.scroll_count = max(0, min(config.scroll_count, max_scrolls))
        parent = logger or logging.getLogger("scraper")
        self.logger = parent.getChild(config.site_id)

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def extract(self) -> List[NewsRecord]:
        """
        Run the full listing + article extraction.

        Every call repeats the network work; nothing is cached.

        Returns:
            Records in listing discovery order, unique by URL

        Raises:
            ListingFetchError: If the listing page cannot be loaded
        """
        # Imported here to avoid circular imports
        from .utils.normalizers import sanitize_news_item

        self.logger.info(f"Starting extraction for {self.config.name}")
        stubs = await self.scrape_listing()
        unique_stubs = self.dedupe_stubs(stubs)
        to_process = unique_stubs[:self.max_items]
        self.logger.info(
            f"Found {len(stubs)} listing items, {len(unique_stubs)} unique, "
            f"processing {len(to_process)}"
        )

        records: List[NewsRecord] = []
        seen_urls = set()
        degraded = 0

        for idx, stub in enumerate(to_process, 1):
            self.logger.info(f"{Colors.bold(f'[{idx}/{len(to_process)}]')} {stub.title} {Colors.gray(f'({stub.url})')}")
            article = await self.fetch_article(stub.url)
            if not article.ok:
                degraded += 1

            record = sanitize_news_item(self.build_record(stub, article))
            if record.url in seen_urls:
                continue
            seen_urls.add(record.url)
            records.append(record)

        self.logger.info(
            f"✅ Extraction complete: {len(records)} records "
            f"({len(records) - degraded} full, {degraded} preview only)"
        )
        return records

    # ------------------------------------------------------------------
    # Listing page
    # ------------------------------------------------------------------

    async def prepare_session(self):
        """Set site cookies on the session before the listing loads."""
        if self.config.cookies:
            await self.session.add_cookies(self.config.base_url, dict(self.config.cookies))

    async def scrape_listing(self) -> List[ListingStub]:
        """
        Load the listing page and parse its cards.

        Raises:
            ListingFetchError: On navigation failure or a blocked page
        """
        # Imported here to avoid circular imports
        from .utils.extractors import detect_blocker

        self.logger.info(f"Fetching listing from {self.config.base_url}")
        try:
            await self.prepare_session()
            soup = await self.session.fetch_soup(
                self.config.base_url,
                wait_selector=self.config.listing.container,
                scroll_count=self.scroll_count,
            )
        except Exception as e:
            error = ListingFetchError(str(e), site=self.config.site_id)
            self.logger.error(f"{Colors.red('[ERR]')} {error}")
            raise error from e

        blocked, reason = detect_blocker(soup)
        if blocked:
            error = ListingFetchError(f"Site blocks automation: {reason}", site=self.config.site_id)
            self.logger.error(f"{Colors.red('[ERR]')} {error}")
            raise error

        return self.parse_listing(soup)

    def parse_listing(self, soup: BeautifulSoup) -> List[ListingStub]:
        """Parse listing cards in DOM order."""
        container = soup.select_one(self.config.listing.container)
        if container is None:
            self.logger.warning("News container not found, scanning the whole page")
            container = soup

        stubs = []
        for position, element in enumerate(container.select(self.config.listing.item)):
            stub = self.parse_listing_item(element, position)
            if stub is not None:
                stubs.append(stub)
        return stubs

    def parse_listing_item(self, element: Tag, position: int) -> Optional[ListingStub]:
        """
        Parse one listing card.

        Returns:
            ListingStub, or None when the mandatory title or link is missing
        """
        from .utils.extractors import select_text, select_attr, extract_image_url, extract_date_value
        from .utils.normalizers import clean_text, normalize_url

        selectors = self.config.listing
        title = clean_text(select_text(element, selectors.title))
        href = select_attr(element, selectors.link, 'href')

        if not title or not href:
            missing = 'title' if not title else 'url'
            self.logger.warning(f"Dropping listing item #{position}: missing {missing}")
            return None

        image = extract_image_url(element, selectors.image)
        return ListingStub(
            title=title,
            url=normalize_url(href, self.config.origin),
            position=position,
            description=clean_text(select_text(element, selectors.description)),
            category=clean_text(select_text(element, selectors.category)) or None,
            author=clean_text(select_text(element, selectors.author)) or None,
            published=extract_date_value(element, selectors.date),
            image_url=normalize_url(image, self.config.origin) if image else None,
            content_type=self.classify_content(element),
        )

    def classify_content(self, element: Tag) -> Optional[str]:
        """Classify a listing card (e.g. Article, Video)."""
        from .utils.extractors import select_first, select_text
        from .utils.normalizers import clean_text

        selectors = self.config.listing
        if selectors.video_indicator and select_first(element, selectors.video_indicator) is not None:
            return "Video"
        if selectors.content_type:
            label = clean_text(select_text(element, selectors.content_type))
            if label:
                return label
        return self.config.content_type

    def dedupe_stubs(self, stubs: List[ListingStub]) -> List[ListingStub]:
        """Drop repeated URLs, keeping the first occurrence."""
        seen = set()
        unique = []
        for stub in stubs:
            if stub.url in seen:
                continue
            seen.add(stub.url)
            unique.append(stub)
        return unique

    # ------------------------------------------------------------------
    # Article page
    # ------------------------------------------------------------------

    async def fetch_article(self, url: str) -> ArticleResult:
        """
        Fetch and parse an article page.

        Never raises for navigation or parsing problems: the failure is
        logged and returned in ArticleResult.error.
        """
        try:
            soup = await self.session.fetch_soup(url, wait_selector=self.config.article.content)
            content = self.parse_article(soup)
        except Exception as e:
            error = ArticleFetchError(str(e), site=self.config.site_id)
            self.logger.warning(f"   {Colors.yellow('[PREVIEW]')} {url}: {error}")
            return ArticleResult(url=url, error=str(error))

        if content is None or not content.blocks:
            self.logger.warning(f"   {Colors.yellow('[PREVIEW]')} {url}: article content not found")
            return ArticleResult(url=url, error="Article content not found")

        self.logger.debug(f"   ➤ {len(content.blocks)} content blocks extracted")
        return ArticleResult(url=url, content=content)

    def parse_article(self, soup: BeautifulSoup) -> Optional[ArticleContent]:
        """Extract article fields with the site's article selectors."""
        from .utils.extractors import extract_article
        return extract_article(soup, self.config.article)

    # ------------------------------------------------------------------
    # Record assembly
    # ------------------------------------------------------------------

    def build_record(self, stub: ListingStub, article: ArticleResult) -> Dict[str, Any]:
        """
        Merge listing and article data into a raw record dict.

        fetched_at is stamped here, after the article fetch.
        """
        content = article.content
        description = stub.description
        # Listings without a description (e.g. watcherguru) preview the title
        preview = description or stub.title

        return {
            'source': self.config.site_id,
            'url': stub.url,
            'title': stub.title or (content.title if content else ""),
            'description': description,
            'published_at': stub.published or (content.published if content else None),
            'fetched_at': datetime.now(timezone.utc),
            'category': stub.category,
            'author': stub.author or (content.author if content else None),
            'content_type': stub.content_type,
            'full_content': content.text if content else None,
            'preview_content': preview,
        }
