"""
CryptoNews scraper.

Site structure:
- Listing page: /news/ with lazy-loaded `archive-template-latest-news` cards
- Article pages: `.article-single__content` body with a lead paragraph
"""

from ..base import BaseScraper
from ..config import get_site_config


class CryptoNewsScraper(BaseScraper):
    """Scraper for cryptonews.com. Uses the shared extraction flow unchanged."""

    site_key = 'cryptonews'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
