"""
CoinDesk scraper.

CoinDesk renames its CSS classes often, so the listing is a generic scan
over cards and bare links. Only links into the editorial sections are
kept; navigation, video and sponsor links are dropped.
"""

from typing import Optional
from urllib.parse import urlparse

from bs4 import Tag

from ..base import BaseScraper, ListingStub
from ..config import get_site_config

ARTICLE_SECTIONS = ('/markets/', '/news/', '/business/', '/policy/', '/tech/')


def is_article_url(url: str) -> bool:
    """True when the URL path is inside an editorial section."""
    path = urlparse(url).path
    return any(section in path for section in ARTICLE_SECTIONS)


class CoinDeskScraper(BaseScraper):
    """Scraper for coindesk.com."""

    site_key = 'coindesk'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)

    def parse_listing_item(self, element: Tag, position: int) -> Optional[ListingStub]:
        stub = super().parse_listing_item(element, position)
        if stub is None:
            return None
        if not is_article_url(stub.url):
            self.logger.debug(f"Skipping non-article link {stub.url}")
            return None
        return stub
