"""
Exceptions raised by the extraction engine.

Every error carries the site identifier and the stage it happened in so a
log line is enough to diagnose a failed run.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for all extraction engine errors."""

    stage = "engine"

    def __init__(self, message: str, site: Optional[str] = None, stage: Optional[str] = None):
        self.message = message
        self.site = site
        if stage:
            self.stage = stage
        super().__init__(self.__str__())

    def __str__(self):
        prefix = f"[{self.site}] " if self.site else ""
        return f"{prefix}{self.stage}: {self.message}"


class UnknownSiteError(ScraperError):
    """Requested site identifier has no registered scraper."""

    stage = "resolve"


class StrategyInitializationError(ScraperError):
    """Constructing a site scraper failed (e.g. bad selector configuration)."""

    stage = "init"


class ListingFetchError(ScraperError):
    """The listing page could not be loaded. Fatal for the site run."""

    stage = "listing"


class ArticleFetchError(ScraperError):
    """An article page could not be loaded. Degrades one record only."""

    stage = "article"


class SessionReleaseError(ScraperError):
    """Closing a browser session failed. Logged, never raised over a run result."""

    stage = "release"
