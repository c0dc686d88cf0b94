"""
Bitcoin.com News scraper.

The listing is built with styled-components, so card selectors cover the
generated class names seen across deploys plus plain headings. Headings
that are too short or too long to be a headline (section labels, promo
blurbs) are skipped.
"""

from typing import Optional

from bs4 import Tag

from ..base import BaseScraper, ListingStub
from ..config import get_site_config

MIN_TITLE_LENGTH = 15
MAX_TITLE_LENGTH = 200


class BitcoinComScraper(BaseScraper):
    """Scraper for news.bitcoin.com."""

    site_key = 'bitcoincom'

    def __init__(self, session, logger=None, **options):
        super().__init__(get_site_config(self.site_key), session, logger, **options)

    def parse_listing_item(self, element: Tag, position: int) -> Optional[ListingStub]:
        stub = super().parse_listing_item(element, position)
        if stub is None:
            return None
        if not MIN_TITLE_LENGTH <= len(stub.title) <= MAX_TITLE_LENGTH:
            self.logger.debug(f"Skipping card #{position}, not a headline: {stub.title!r}")
            return None
        return stub
