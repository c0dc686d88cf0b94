"""
Scraper Manager - orchestrates all site scrapers.

Resolves site identifiers to scrapers, supplies the browser session and
logger, and isolates failures per site. Batches run on a fixed pool of
workers, each owning one browser session.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Type, Union
import logging

from api.config import settings
from .base import BaseScraper, Colors, NewsRecord
from .config import SITES, get_enabled_sites
from .crawlers.browser import BrowserOptions, BrowserSession, open_session, use_session
from .exceptions import ScraperError, StrategyInitializationError, UnknownSiteError
from .sites import (
    AMBCryptoScraper,
    BeInCryptoScraper,
    BitcoinComScraper,
    BitcoinMagazineScraper,
    CoinDeskScraper,
    CoinTelegraphScraper,
    CryptoNewsScraper,
    CryptoSlateScraper,
    DecryptScraper,
    TheBlockScraper,
    WatcherGuruScraper,
)

logger = logging.getLogger("scraper.manager")


# Registry of implemented scrapers, in batch order
SCRAPER_REGISTRY: Dict[str, Type[BaseScraper]] = {
    'cryptonews': CryptoNewsScraper,
    'cointelegraph': CoinTelegraphScraper,
    'coindesk': CoinDeskScraper,
    'decrypt': DecryptScraper,
    'theblock': TheBlockScraper,
    'ambcrypto': AMBCryptoScraper,
    'bitcoinmagazine': BitcoinMagazineScraper,
    'bitcoincom': BitcoinComScraper,
    'beincrypto': BeInCryptoScraper,
    'watcherguru': WatcherGuruScraper,
    'cryptoslate': CryptoSlateScraper,
}

ALL_SITES = 'all'


def _manager_log(parent: Optional[logging.Logger]) -> logging.Logger:
    """Manager messages go under the caller's logger when one is given."""
    return parent.getChild('manager') if parent else logger


class SiteRunStatus(Enum):
    """Lifecycle of one site run."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SiteRun:
    """Outcome of one site run within a batch."""
    site: str
    status: SiteRunStatus = SiteRunStatus.PENDING
    records: List[NewsRecord] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    cancelled: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status == SiteRunStatus.SUCCEEDED

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def start(self):
        self.status = SiteRunStatus.RUNNING
        self.started_at = datetime.now(timezone.utc)

    def succeed(self, records: List[NewsRecord]):
        self.status = SiteRunStatus.SUCCEEDED
        self.records = list(records)
        self.completed_at = datetime.now(timezone.utc)

    def fail(self, error: BaseException, cancelled: bool = False):
        self.status = SiteRunStatus.FAILED
        self.records = []
        self.error = str(error) or type(error).__name__
        self.error_type = type(error).__name__
        self.cancelled = cancelled
        self.completed_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict:
        return {
            'site': self.site,
            'status': self.status.value,
            'success': self.success,
            'total': self.total,
            'error': self.error,
            'error_type': self.error_type,
            'cancelled': self.cancelled,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
        }


class ScraperManager:
    """
    Manages and orchestrates all site scrapers.

    Usage:
        manager = ScraperManager()

        # Run single scraper (raises on failure)
        records = await manager.run_extraction('coindesk')

        # Run a batch (never raises for per-site failures)
        records = await manager.run_batch(['coindesk', 'decrypt'], concurrency=2)

        # Check status
        summary = manager.get_results_summary()
    """

    def __init__(
        self,
        options: Optional[BrowserOptions] = None,
        session_factory: Optional[Callable[[BrowserOptions], BrowserSession]] = None,
        max_items: Optional[int] = None,
        max_scrolls: Optional[int] = None,
        concurrency: Optional[int] = None,
    ):
        """
        Initialize the scraper manager.

        Args:
            options: Browser options for engine-owned sessions (defaults from settings)
            session_factory: Builds engine-owned sessions, BrowserSession by default
            max_items: Listing stubs processed per site
            max_scrolls: Upper bound for per-site listing scrolls
            concurrency: Default number of batch workers
        """
        self.options = options or BrowserOptions.from_settings(settings)
        self.session_factory = session_factory or BrowserSession
        self.max_items = settings.max_items_per_site if max_items is None else max_items
        self.max_scrolls = settings.max_scrolls if max_scrolls is None else max_scrolls
        self.concurrency = concurrency or settings.batch_concurrency
        self.results: Dict[str, SiteRun] = {}
        self._site_tasks: Dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_scraper_class(self, site_key: str) -> Type[BaseScraper]:
        """
        Resolve a site identifier to its scraper class.

        Raises:
            UnknownSiteError: If no scraper is registered for site_key
        """
        if site_key not in SCRAPER_REGISTRY:
            valid = ', '.join(SCRAPER_REGISTRY)
            raise UnknownSiteError(f"No scraper registered (valid sites: {valid})", site=site_key)
        return SCRAPER_REGISTRY[site_key]

    def get_scraper(self, site_key: str, session, log: Optional[logging.Logger] = None) -> BaseScraper:
        """
        Build a scraper instance for one run.

        Raises:
            UnknownSiteError: If site_key is not registered
            StrategyInitializationError: If the scraper cannot be constructed
        """
        scraper_class = self.resolve_scraper_class(site_key)
        try:
            return scraper_class(
                session,
                logger=log,
                max_items=self.max_items,
                max_scrolls=self.max_scrolls,
            )
        except StrategyInitializationError:
            raise
        except Exception as e:
            raise StrategyInitializationError(str(e), site=site_key) from e

    def resolve_sites(self, site_keys: Union[str, Iterable[str], None] = ALL_SITES) -> List[str]:
        """
        Expand 'all' (or None) to every enabled site and drop repeats.

        Unknown identifiers are kept so the batch records them as failed.
        """
        if site_keys is None or site_keys == ALL_SITES:
            return [k for k in get_enabled_sites() if k in SCRAPER_REGISTRY]
        if isinstance(site_keys, str):
            site_keys = [site_keys]

        resolved = []
        for key in site_keys:
            if key == ALL_SITES:
                candidates = [k for k in get_enabled_sites() if k in SCRAPER_REGISTRY]
            else:
                candidates = [key]
            for candidate in candidates:
                if candidate not in resolved:
                    resolved.append(candidate)
        return resolved

    def _options(self, headless: Optional[bool]) -> BrowserOptions:
        if headless is None or headless == self.options.headless:
            return self.options
        return replace(self.options, headless=headless)

    def _acquire(self, session, headless: Optional[bool], log: logging.Logger):
        """Caller-owned session if given, otherwise a new engine-owned one."""
        if session is not None:
            return use_session(session)
        return open_session(self._options(headless), factory=self.session_factory, log=log)

    # ------------------------------------------------------------------
    # Single site
    # ------------------------------------------------------------------

    async def run_extraction(
        self,
        site_key: str,
        headless: Optional[bool] = None,
        session=None,
        logger: Optional[logging.Logger] = None,
    ) -> List[NewsRecord]:
        """
        Run the scraper for a single site.

        Args:
            site_key: Site identifier
            headless: Override the headless option for an engine-owned session
            session: Caller-owned session to reuse; never closed here
            logger: Parent logger for the scraper's messages

        Returns:
            List of NewsRecord

        Raises:
            UnknownSiteError, StrategyInitializationError, ListingFetchError
        """
        log = _manager_log(logger)

        try:
            self.resolve_scraper_class(site_key)
        except UnknownSiteError as e:
            log.error(f"{Colors.red('[ERR]')} {e}")
            raise

        log.info(f"Starting extraction for {site_key}")
        async with self._acquire(session, headless, log) as active:
            try:
                scraper = self.get_scraper(site_key, active, logger)
            except StrategyInitializationError as e:
                log.error(f"{Colors.red('[ERR]')} {e}")
                raise
            return await scraper.extract()

    async def run_site(
        self,
        site_key: str,
        headless: Optional[bool] = None,
        session=None,
        logger: Optional[logging.Logger] = None,
    ) -> SiteRun:
        """
        Run one site and record the outcome instead of raising.

        The run is stored in self.results. Cancellation marks the run as
        failed and is re-raised.
        """
        log = _manager_log(logger)
        run = self.results.get(site_key)
        if run is None or run.status != SiteRunStatus.PENDING:
            run = SiteRun(site=site_key)
            self.results[site_key] = run

        run.start()
        try:
            records = await self.run_extraction(site_key, headless=headless, session=session, logger=logger)
        except asyncio.CancelledError as e:
            run.fail(e, cancelled=True)
            log.warning(f"{Colors.yellow('[CANCELLED]')} Run for {site_key} was cancelled")
            raise
        except ScraperError as e:
            run.fail(e)
        except Exception as e:
            run.fail(e)
            log.exception(f"Unexpected error while scraping {site_key}: {e}")
        else:
            run.succeed(records)
            log.info(f"{Colors.green('[OK]')} {site_key}: {len(records)} records")
        return run

    def cancel_site(self, site_key: str) -> bool:
        """
        Cancel the in-flight run for one site of a running batch.

        Other sites are not affected.

        Returns:
            True if a running site task was cancelled
        """
        task = self._site_tasks.get(site_key)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def _run_site_task(self, site_key: str, session, logger: Optional[logging.Logger]):
        """Run one site as its own task so it can be cancelled alone."""
        task = asyncio.create_task(self.run_site(site_key, session=session, logger=logger))
        self._site_tasks[site_key] = task
        try:
            # wait() instead of await so a per-site cancel stays inside the task
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        finally:
            self._site_tasks.pop(site_key, None)

        if task.cancelled():
            run = self.results[site_key]
            if run.status != SiteRunStatus.FAILED:
                run.fail(asyncio.CancelledError(), cancelled=True)

    async def _worker(self, queue: asyncio.Queue, session, headless: Optional[bool], logger: Optional[logging.Logger]):
        """Drain site ids from the queue on one session."""
        if queue.empty():
            return
        log = _manager_log(logger)
        async with self._acquire(session, headless, log) as active:
            while True:
                try:
                    site_key = queue.get_nowait()
                except asyncio.QueueEmpty:
                    break
                await self._run_site_task(site_key, active, logger)

    async def run_batch(
        self,
        site_keys: Union[str, Iterable[str], None] = ALL_SITES,
        concurrency: Optional[int] = None,
        headless: Optional[bool] = None,
        session=None,
        logger: Optional[logging.Logger] = None,
    ) -> List[NewsRecord]:
        """
        Run scrapers for multiple sites.

        Args:
            site_keys: Site identifiers, or 'all' for every enabled site
            concurrency: Number of workers (each owns one browser session)
            headless: Override the headless option for engine-owned sessions
            session: Caller-owned session shared sequentially by all sites
            logger: Parent logger

        Returns:
            Records of every successful site, concatenated in batch order

        Raises:
            ValueError: If a shared session is combined with concurrency > 1
        """
        log = _manager_log(logger)
        sites = self.resolve_sites(site_keys)
        if session is not None:
            # A shared session runs its sites one after another
            if concurrency is not None and concurrency > 1:
                raise ValueError("A caller-owned session cannot be shared by concurrent workers")
            requested = 1
        else:
            requested = concurrency or self.concurrency
        workers_count = max(1, min(requested, len(sites)))

        log.info(f"Starting batch for {len(sites)} sites with {workers_count} worker(s): {sites}")

        queue: asyncio.Queue = asyncio.Queue()
        for key in sites:
            self.results[key] = SiteRun(site=key)
            queue.put_nowait(key)

        workers = [
            asyncio.create_task(self._worker(queue, session, headless, logger))
            for _ in range(workers_count)
        ]
        try:
            await asyncio.gather(*workers)
        except asyncio.CancelledError:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            log.warning(f"{Colors.yellow('[CANCELLED]')} Batch cancelled")
            raise

        records = [record for key in sites for record in self.results[key].records]
        failed = [key for key in sites if not self.results[key].success]
        if failed:
            log.warning(
                f"Batch finished: {len(records)} records, "
                f"{Colors.red(f'{len(failed)} failed')} ({', '.join(failed)})"
            )
        else:
            log.info(f"Batch finished: {len(records)} records from {len(sites)} sites")
        return records

    def spawn_batch(self, site_keys: Union[str, Iterable[str], None] = ALL_SITES, **kwargs) -> asyncio.Task:
        """
        Start run_batch in the background and return its task.

        The caller may await the task or leave it running; cancelling it
        still releases every session.
        """
        return asyncio.create_task(self.run_batch(site_keys, **kwargs))

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def list_scrapers(self) -> List[Dict]:
        """
        List all configured sites and their implementation status.

        Returns:
            List of site info dictionaries
        """
        scrapers = []
        for key, config in SITES.items():
            scrapers.append({
                'key': key,
                'name': config.name,
                'enabled': config.enabled,
                'implemented': key in SCRAPER_REGISTRY,
                'url': config.base_url,
            })
        return scrapers

    def get_implemented_scrapers(self) -> List[str]:
        """Get list of implemented scraper keys."""
        return list(SCRAPER_REGISTRY.keys())

    def get_results_summary(self) -> Dict:
        """
        Get summary of all site runs.

        Returns:
            Summary dictionary with totals
        """
        if not self.results:
            return {
                'total_sites': 0,
                'successful': 0,
                'failed': 0,
                'total_records': 0,
                'sites': {},
            }

        successful = sum(1 for r in self.results.values() if r.success)
        failed = sum(1 for r in self.results.values() if r.status == SiteRunStatus.FAILED)

        return {
            'total_sites': len(self.results),
            'successful': successful,
            'failed': failed,
            'total_records': sum(r.total for r in self.results.values()),
            'sites': {k: v.to_dict() for k, v in self.results.items()},
        }


# Convenience functions for standalone usage

async def run_extraction(site_key: str, **kwargs) -> List[NewsRecord]:
    """
    Scrape a single site.

    Args:
        site_key: Site identifier
        **kwargs: headless, session, logger

    Returns:
        List of NewsRecord
    """
    manager = ScraperManager()
    return await manager.run_extraction(site_key, **kwargs)


async def run_batch(site_keys: Union[str, Iterable[str], None] = ALL_SITES, **kwargs) -> List[NewsRecord]:
    """
    Scrape several sites, logging failures instead of raising.

    Args:
        site_keys: Site identifiers or 'all'
        **kwargs: concurrency, headless, session, logger

    Returns:
        Concatenated records
    """
    manager = ScraperManager()
    return await manager.run_batch(site_keys, **kwargs)
