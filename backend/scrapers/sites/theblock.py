"""
The Block scraper.

The Block shows a consent wall to first-time visitors. Setting the
consent and visited_before cookies on the whole domain before the listing
loads skips it.
"""

from ..base import BaseScraper
from ..config import get_site_config

COOKIE_DOMAIN = '.theblock.co'


class TheBlockScraper(BaseScraper):
    """Scraper for theblock.co."""

    site_key = 'theblock'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)

    async def prepare_session(self):
        """Set consent cookies on the whole domain."""
        cookies = dict(self.config.cookies)
        await self.session.add_cookies(self.config.base_url, cookies, domain=COOKIE_DOMAIN)
        self.logger.debug(f"Set consent cookies on {COOKIE_DOMAIN}")
