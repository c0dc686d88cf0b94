"""CryptoSlate scraper."""

from ..base import BaseScraper
from ..config import get_site_config


class CryptoSlateScraper(BaseScraper):
    site_key = 'cryptoslate'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)
