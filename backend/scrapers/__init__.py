"""
Multi-site crypto news extraction engine.

This package provides:
- Per-site selector configuration (config.SITES)
- BaseScraper and one scraper per news site (sites/)
- A Playwright browser session with scoped acquisition (crawlers/)
- ScraperManager for single-site and batch runs with per-site isolation
"""

from .base import BaseScraper, SiteConfig, ListingSelectors, ArticleSelectors, NewsRecord
from .config import SITES, get_site_config, get_enabled_sites
from .exceptions import (
    ScraperError,
    UnknownSiteError,
    StrategyInitializationError,
    ListingFetchError,
    ArticleFetchError,
    SessionReleaseError,
)
from .manager import ScraperManager, SiteRun, SiteRunStatus, SCRAPER_REGISTRY

__all__ = [
    'BaseScraper',
    'SiteConfig',
    'ListingSelectors',
    'ArticleSelectors',
    'NewsRecord',
    'SITES',
    'get_site_config',
    'get_enabled_sites',
    'ScraperError',
    'UnknownSiteError',
    'StrategyInitializationError',
    'ListingFetchError',
    'ArticleFetchError',
    'SessionReleaseError',
    'ScraperManager',
    'SiteRun',
    'SiteRunStatus',
    'SCRAPER_REGISTRY',
]
