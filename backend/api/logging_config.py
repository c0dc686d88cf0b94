"""
Logging setup shared by the API and the CLI.

Console output keeps ANSI colors; the log file gets them stripped so the
/api/logs endpoint can parse it back.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from api.config import settings

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


# Custom formatter to strip ANSI color codes from file logs
class ColorStripFormatter(logging.Formatter):
    """Formatter that strips ANSI color codes from log messages."""

    def format(self, record):
        message = super().format(record)
        return ANSI_ESCAPE.sub('', message)


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure root and scraper logging once.

    Args:
        level: Log level name (defaults to settings.log_level)
        log_file: Log file path (defaults to settings.log_file)

    Returns:
        The 'scraper' logger
    """
    level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    log_file = Path(log_file or settings.log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setFormatter(ColorStripFormatter(settings.log_format))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(settings.log_format))

    logging.basicConfig(
        level=level,
        handlers=[file_handler, console_handler],
        force=True  # Override any existing configuration
    )

    # Scraper loggers get their own handlers so messages appear once
    scraper_logger = logging.getLogger('scraper')
    scraper_logger.propagate = False
    for handler in list(scraper_logger.handlers):
        scraper_logger.removeHandler(handler)
        handler.close()

    scraper_file_handler = logging.FileHandler(log_file, encoding='utf-8')
    scraper_file_handler.setFormatter(ColorStripFormatter(settings.log_format))
    scraper_logger.addHandler(scraper_file_handler)

    scraper_console_handler = logging.StreamHandler()
    scraper_console_handler.setFormatter(logging.Formatter(settings.log_format))
    scraper_logger.addHandler(scraper_console_handler)
    scraper_logger.setLevel(level)

    # Playwright and httpx are chatty at DEBUG
    for noisy in ('asyncio', 'httpx', 'urllib3'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return scraper_logger


def parse_log_line(line: str) -> Dict[str, Optional[str]]:
    """
    Split a '%(asctime)s - %(name)s - %(levelname)s - %(message)s' line.

    Lines that do not follow the format (tracebacks, wrapped output) are
    returned as a bare message.
    """
    line = ANSI_ESCAPE.sub('', line.rstrip('\n'))
    parts = line.split(' - ', 3)
    if len(parts) == 4 and parts[2] in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        timestamp, name, level, message = parts
        return {'timestamp': timestamp, 'logger': name, 'level': level, 'message': message}
    return {'timestamp': None, 'logger': None, 'level': None, 'message': line}


def read_log_file(limit: int = 100, log_file: Optional[Path] = None) -> List[Dict[str, Optional[str]]]:
    """Return the newest `limit` log lines, oldest first."""
    log_file = Path(log_file or settings.log_file)
    if not log_file.exists():
        return []
    with open(log_file, 'r', encoding='utf-8', errors='replace') as f:
        lines = [line for line in f.readlines() if line.strip()]
    return [parse_log_line(line) for line in lines[-limit:]]
