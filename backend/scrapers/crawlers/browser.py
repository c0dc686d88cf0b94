"""
Browser session for JavaScript-rendered news sites.

Uses Playwright Chromium with a realistic fingerprint. One BrowserSession
drives one browser context and must only be used by one scraper at a time.

Acquisition is always explicit:
- open_session(): the engine creates the session and closes it on exit
- use_session(): the caller owns the session; the engine never closes it
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, Optional

from bs4 import BeautifulSoup
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Route,
    TimeoutError as PlaywrightTimeoutError,
)

from ..exceptions import SessionReleaseError

logger = logging.getLogger("scraper.session")

BLOCKED_RESOURCE_TYPES = {'image', 'media', 'font', 'stylesheet'}
BLOCKED_URL_PARTS = (
    'google-analytics.com',
    'googletagmanager.com',
    'doubleclick.net',
    'facebook.net',
    'hotjar.com',
    'scorecardresearch.com',
)

SCROLL_PAUSE_MS = 1000
MAX_SELECTOR_WAIT_MS = 10000
CLEANUP_TIMEOUT = 5.0


@dataclass(frozen=True)
class BrowserOptions:
    """Options recognized by BrowserSession."""
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/94.0.4606.81 Safari/537.36"
    )
    viewport_width: int = 1280
    viewport_height: int = 720
    ignore_https_errors: bool = True
    navigation_timeout_ms: int = 30000
    retries: int = 3
    block_resources: bool = True
    rate_limit_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings, headless: Optional[bool] = None) -> "BrowserOptions":
        """Build options from api.config.Settings, optionally overriding headless."""
        return cls(
            headless=settings.browser_headless if headless is None else headless,
            user_agent=settings.browser_user_agent,
            viewport_width=settings.browser_viewport_width,
            viewport_height=settings.browser_viewport_height,
            ignore_https_errors=settings.browser_ignore_https_errors,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            retries=settings.navigation_retries,
            block_resources=settings.block_resources,
            rate_limit_seconds=settings.rate_limit_seconds,
        )


class BrowserSession:
    """
    Playwright browser context with retrying navigation.

    The browser is launched lazily on the first navigation, so a session
    that is never used never starts Chromium.
    """

    def __init__(self, options: Optional[BrowserOptions] = None):
        self.options = options or BrowserOptions()
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._last_request_time = 0.0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _wait_for_rate_limit(self):
        """Wait so consecutive navigations are at least rate_limit_seconds apart."""
        elapsed = time.monotonic() - self._last_request_time
        wait_time = self.options.rate_limit_seconds - elapsed
        if wait_time > 0:
            await asyncio.sleep(wait_time)
        self._last_request_time = time.monotonic()

    def _is_alive(self) -> bool:
        return (
            self._browser is not None
            and self._context is not None
            and self._browser.is_connected()
        )

    async def _init_browser(self):
        """Launch Chromium and create the context if not already running."""
        if self._closed:
            raise RuntimeError("Browser session is closed")
        if self._is_alive():
            return
        await self._cleanup()

        logger.debug("Launching Chromium browser...")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.options.headless,
                args=[
                    '--disable-blink-features=AutomationControlled',
                    '--disable-dev-shm-usage',
                    '--no-sandbox',
                    '--disable-setuid-sandbox',
                    '--disable-gpu',
                ],
                handle_sigint=False,
                handle_sigterm=False,
                handle_sighup=False,
            )
            self._context = await self._browser.new_context(
                viewport={
                    'width': self.options.viewport_width,
                    'height': self.options.viewport_height,
                },
                user_agent=self.options.user_agent,
                locale='en-US',
                ignore_https_errors=self.options.ignore_https_errors,
                extra_http_headers={
                    'Accept-Language': 'en-US,en;q=0.9',
                    'DNT': '1',
                    'Upgrade-Insecure-Requests': '1',
                },
            )
            self._context.set_default_timeout(self.options.navigation_timeout_ms)

            # Hide automation indicators
            await self._context.add_init_script("""
                Object.defineProperty(navigator, 'webdriver', {
                    get: () => undefined
                });
                Object.defineProperty(navigator, 'languages', {
                    get: () => ['en-US', 'en']
                });
            """)

            if self.options.block_resources:
                await self._context.route("**/*", self._route_request)
        except Exception as e:
            logger.error(f"Failed to initialize browser: {e}")
            await self._cleanup()
            raise

    async def _route_request(self, route: Route):
        """Abort images, fonts, stylesheets and tracker requests."""
        request = route.request
        if request.resource_type in BLOCKED_RESOURCE_TYPES or any(
            part in request.url for part in BLOCKED_URL_PARTS
        ):
            await route.abort()
        else:
            await route.continue_()

    async def _cleanup(self):
        """Release browser resources with timeouts to prevent hanging."""
        for name, resource, closer in (
            ('context', self._context, 'close'),
            ('browser', self._browser, 'close'),
            ('playwright', self._playwright, 'stop'),
        ):
            if resource is None:
                continue
            try:
                await asyncio.wait_for(getattr(resource, closer)(), timeout=CLEANUP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning(f"Closing {name} timed out, forcing cleanup")
            except PlaywrightError as e:
                logger.debug(f"Error closing {name}: {e}")
        self._context = None
        self._browser = None
        self._playwright = None

    async def add_cookies(self, url: str, cookies: Dict[str, str], domain: Optional[str] = None):
        """
        Add cookies to the context.

        Args:
            url: Page the cookies belong to (used when no domain is given)
            cookies: Name to value mapping
            domain: Cookie domain, e.g. '.theblock.co'
        """
        await self._init_browser()
        if domain:
            entries = [{'name': k, 'value': v, 'domain': domain, 'path': '/'} for k, v in cookies.items()]
        else:
            entries = [{'name': k, 'value': v, 'url': url} for k, v in cookies.items()]
        await self._context.add_cookies(entries)
        logger.debug(f"Set {len(entries)} cookies for {domain or url}")

    async def _load(self, page: Page, url: str, wait_selector: Optional[str], scroll_count: int) -> str:
        response = await page.goto(
            url,
            wait_until='domcontentloaded',
            timeout=self.options.navigation_timeout_ms,
        )
        if response is not None and response.status >= 400:
            raise RuntimeError(f"HTTP {response.status} for {url}")

        if wait_selector:
            try:
                await page.wait_for_selector(
                    wait_selector,
                    timeout=min(self.options.navigation_timeout_ms, MAX_SELECTOR_WAIT_MS),
                )
            except PlaywrightTimeoutError:
                logger.debug(f"Selector {wait_selector} not found on {url}")

        for _ in range(scroll_count):
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            await page.wait_for_timeout(SCROLL_PAUSE_MS)

        return await page.content()

    async def fetch(self, url: str, wait_selector: Optional[str] = None, scroll_count: int = 0) -> str:
        """
        Navigate to a URL and return the rendered HTML.

        A failed attempt is retried immediately, up to `retries` more times.

        Args:
            url: URL to fetch
            wait_selector: Optional CSS selector to wait for
            scroll_count: Number of scrolls to trigger lazy loading

        Returns:
            HTML content as string

        Raises:
            PlaywrightError, RuntimeError: The last failure once retries are exhausted
        """
        await self._wait_for_rate_limit()
        attempts = max(1, self.options.retries + 1)
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            page: Optional[Page] = None
            try:
                await self._init_browser()
                page = await self._context.new_page()
                return await self._load(page, url, wait_selector, scroll_count)
            except (PlaywrightError, RuntimeError) as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{attempts} failed for {url}: {e}")
                if self._closed:
                    break
            finally:
                if page is not None:
                    try:
                        await asyncio.wait_for(page.close(), timeout=CLEANUP_TIMEOUT)
                    except (PlaywrightError, asyncio.TimeoutError):
                        pass

        raise last_error

    async def fetch_soup(self, url: str, wait_selector: Optional[str] = None, scroll_count: int = 0) -> BeautifulSoup:
        """Fetch a URL and return parsed BeautifulSoup."""
        html = await self.fetch(url, wait_selector=wait_selector, scroll_count=scroll_count)
        return BeautifulSoup(html, 'html.parser')

    async def close(self):
        """Close the browser. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._cleanup()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def release_session(session, log: Optional[logging.Logger] = None):
    """Close a session, logging (never raising) a close failure."""
    log = log or logger
    try:
        await session.close()
    except Exception as e:
        error = SessionReleaseError(str(e))
        log.warning(f"{error}")


@asynccontextmanager
async def open_session(
    options: Optional[BrowserOptions] = None,
    factory: Optional[Callable[[BrowserOptions], BrowserSession]] = None,
    log: Optional[logging.Logger] = None,
) -> AsyncIterator[BrowserSession]:
    """
    Create an engine-owned session and close it exactly once on exit.

    Args:
        options: Browser options
        factory: Session constructor, BrowserSession by default
        log: Logger for release failures
    """
    session = (factory or BrowserSession)(options or BrowserOptions())
    try:
        yield session
    finally:
        await release_session(session, log)


@asynccontextmanager
async def use_session(session) -> AsyncIterator[BrowserSession]:
    """Lend a caller-owned session to the engine. It is never closed here."""
    yield session
