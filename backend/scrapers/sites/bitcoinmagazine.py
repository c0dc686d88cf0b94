"""
Bitcoin Magazine scraper.

Site structure:
- Listing page: /articles, a tagDiv (Newspaper theme) flex block
- Video posts carry a `.td-video-play-ico` overlay on the thumbnail and
  are classified as "Video"; everything else is an "Article"
- Article pages: tdb single-post blocks with subtitle and tag list
"""

from ..base import BaseScraper
from ..config import get_site_config


class BitcoinMagazineScraper(BaseScraper):
    """Scraper for bitcoinmagazine.com."""

    site_key = 'bitcoinmagazine'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
