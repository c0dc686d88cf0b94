"""
BeInCrypto scraper.

Cards carry an article-type badge (News, Analysis, Sponsored, ...) that is
used as the record's content type.
"""

from ..base import BaseScraper
from ..config import get_site_config


class BeInCryptoScraper(BaseScraper):
    site_key = 'beincrypto'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
