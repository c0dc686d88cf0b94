"""Decrypt scraper (cryptocurrencies news section, generic card selectors)."""

from ..base import BaseScraper
from ..config import get_site_config


class DecryptScraper(BaseScraper):
    site_key = 'decrypt'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
