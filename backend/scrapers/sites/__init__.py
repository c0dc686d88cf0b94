"""Per-site scraper implementations."""

from .cryptonews import CryptoNewsScraper
from .cointelegraph import CoinTelegraphScraper
from .coindesk import CoinDeskScraper
from .decrypt import DecryptScraper
from .theblock import TheBlockScraper
from .ambcrypto import AMBCryptoScraper
from .bitcoinmagazine import BitcoinMagazineScraper
from .bitcoincom import BitcoinComScraper
from .beincrypto import BeInCryptoScraper
from .watcherguru import WatcherGuruScraper
from .cryptoslate import CryptoSlateScraper

__all__ = [
    'CryptoNewsScraper',
    'CoinTelegraphScraper',
    'CoinDeskScraper',
    'DecryptScraper',
    'TheBlockScraper',
    'AMBCryptoScraper',
    'BitcoinMagazineScraper',
    'BitcoinComScraper',
    'BeInCryptoScraper',
    'WatcherGuruScraper',
    'CryptoSlateScraper',
]
