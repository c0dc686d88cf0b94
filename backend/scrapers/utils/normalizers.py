"""
Data normalization utilities for scrapers.

These functions standardize scraped data into consistent formats.
"""

import re
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urljoin, urldefrag

from dateutil import parser as dateparser
from dateutil import tz

from ..base import NewsRecord, NEWS_RECORD_FIELDS

TAG_PATTERN = re.compile(r'<[^>]*>')
WHITESPACE_PATTERN = re.compile(r'\s+')
RELATIVE_PATTERN = re.compile(
    r'(\d+)\s*(second|sec|minute|min|hour|hr|day|week|month)s?\b', re.IGNORECASE
)

# US abbreviations shown by several listings ("Mar 18, 2025, 5:16PM EDT")
TZINFOS = {
    'UTC': tz.UTC,
    'GMT': tz.UTC,
    'EDT': tz.tzoffset('EDT', -4 * 3600),
    'EST': tz.tzoffset('EST', -5 * 3600),
    'CDT': tz.tzoffset('CDT', -5 * 3600),
    'CST': tz.tzoffset('CST', -6 * 3600),
    'PDT': tz.tzoffset('PDT', -7 * 3600),
    'PST': tz.tzoffset('PST', -8 * 3600),
}

RELATIVE_UNITS = {
    'second': timedelta(seconds=1),
    'sec': timedelta(seconds=1),
    'minute': timedelta(minutes=1),
    'min': timedelta(minutes=1),
    'hour': timedelta(hours=1),
    'hr': timedelta(hours=1),
    'day': timedelta(days=1),
    'week': timedelta(weeks=1),
    'month': timedelta(days=30),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clean_text(text: Optional[str]) -> str:
    """
    Strip HTML tags and collapse whitespace.

    Examples:
        "  Bitcoin\\n  hits <b>ATH</b> " -> "Bitcoin hits ATH"
        None -> ""
    """
    if not text:
        return ""
    text = TAG_PATTERN.sub(' ', str(text))
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def normalize_url(url: Optional[str], base_url: str = "") -> str:
    """
    Make a link absolute and drop its fragment.

    Examples:
        ("/news/btc", "https://cointelegraph.com") -> "https://cointelegraph.com/news/btc"
        ("//cdn.site.com/a.jpg", "https://site.com") -> "https://cdn.site.com/a.jpg"
    """
    if not url:
        return ""
    url = url.strip()
    if base_url:
        url = urljoin(base_url if base_url.endswith('/') else base_url + '/', url)
    return urldefrag(url)[0]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_date(text: Optional[str], reference: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a site date string into a UTC datetime.

    Handles ISO timestamps, "Mar 18, 2025, 5:16PM EDT •" style labels and
    relative labels ("5 min ago", "2 hours ago", "yesterday").

    Returns:
        Timezone-aware datetime, or None when the text holds no date
    """
    if not text:
        return None
    reference = _as_utc(reference) if reference else utc_now()

    text = clean_text(text).replace('•', ' ').strip(' ,|')
    if not text:
        return None

    lowered = text.lower()
    if lowered in ('just now', 'now', 'today'):
        return reference
    if lowered == 'yesterday':
        return reference - timedelta(days=1)

    if 'ago' in lowered:
        match = RELATIVE_PATTERN.search(lowered)
        if match:
            amount = int(match.group(1))
            unit = RELATIVE_UNITS[match.group(2).lower()]
            try:
                return reference - amount * unit
            except (OverflowError, ValueError):
                return None

    try:
        parsed = dateparser.parse(text, tzinfos=TZINFOS, fuzzy=True)
    except (ValueError, OverflowError):
        return None
    return _as_utc(parsed)


def coerce_datetime(value: Any, reference: Optional[datetime] = None) -> Optional[datetime]:
    """Convert a datetime, epoch number or date string to a UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return normalize_date(str(value), reference)


def _optional_text(value: Any) -> Optional[str]:
    cleaned = clean_text(value) if value is not None else ""
    return cleaned or None


def _optional_block(value: Any) -> Optional[str]:
    """Trim multi-line content without collapsing its line breaks."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def sanitize_news_item(item: Any) -> NewsRecord:
    """
    Coerce a loosely-typed item into a NewsRecord.

    Accepts a NewsRecord, a mapping or any object exposing the record
    attributes. Never raises: missing text becomes "", missing optional
    fields become None, unparsable dates fall back to fetched_at (or now).
    Sanitizing an already-sanitized record returns an equal record.
    """
    if isinstance(item, NewsRecord):
        data = asdict(item)
    elif isinstance(item, Mapping):
        data = dict(item)
    else:
        data = {name: getattr(item, name, None) for name in NEWS_RECORD_FIELDS}

    fetched_at = coerce_datetime(data.get('fetched_at')) or utc_now()
    published_at = coerce_datetime(data.get('published_at'), reference=fetched_at) or fetched_at

    return NewsRecord(
        source=clean_text(data.get('source')),
        url=str(data.get('url') or "").strip(),
        title=clean_text(data.get('title')),
        description=clean_text(data.get('description')),
        published_at=published_at,
        fetched_at=fetched_at,
        category=_optional_text(data.get('category')),
        author=_optional_text(data.get('author')),
        content_type=_optional_text(data.get('content_type')),
        full_content=_optional_block(data.get('full_content')),
        preview_content=_optional_text(data.get('preview_content')),
    )
