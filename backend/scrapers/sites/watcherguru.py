"""
Watcher.Guru scraper.

Listing cards have no excerpt, so records preview their title. The card
link is a full-size overlay anchor (`.cs-overlay-link`).
"""

from ..base import BaseScraper
from ..config import get_site_config


class WatcherGuruScraper(BaseScraper):
    """Scraper for watcher.guru news."""

    site_key = 'watcherguru'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
