"""AMBCrypto scraper."""

from ..base import BaseScraper
from ..config import get_site_config


class AMBCryptoScraper(BaseScraper):
    site_key = 'ambcrypto'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
