"""Browser session used by all site scrapers."""

from .browser import BrowserOptions, BrowserSession, open_session, use_session, release_session

__all__ = ['BrowserOptions', 'BrowserSession', 'open_session', 'use_session', 'release_session']
