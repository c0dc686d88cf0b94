"""
Storage helpers for news items.

Records are keyed on (source, url): saving a record that is already
stored, or repeated within the same batch, is silently skipped.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from api.database import NewsItem, utc_now
from scrapers.base import NewsRecord
from scrapers.utils.normalizers import sanitize_news_item

logger = logging.getLogger(__name__)

RECORD_COLUMNS = (
    'source', 'url', 'title', 'description', 'published_at', 'fetched_at',
    'category', 'author', 'content_type', 'full_content', 'preview_content',
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def item_to_dict(item: NewsItem) -> Dict:
    """Serialize a row in the NewsRecord shape plus row metadata."""
    data = {column: getattr(item, column) for column in RECORD_COLUMNS}
    for key in ('published_at', 'fetched_at'):
        data[key] = _aware(data[key]).isoformat()
    data.update({
        'id': item.id,
        'edited_content': item.edited_content,
        'created_at': _aware(item.created_at).isoformat() if item.created_at else None,
        'updated_at': _aware(item.updated_at).isoformat() if item.updated_at else None,
    })
    return data


def save_items(db: Session, records: Iterable) -> int:
    """
    Insert records that are not stored yet.

    Args:
        db: Database session
        records: NewsRecord objects or record-shaped dicts

    Returns:
        Number of rows inserted
    """
    batch: List[NewsRecord] = []
    seen = set()
    for raw in records:
        record = sanitize_news_item(raw)
        key = (record.source, record.url)
        if not record.source or not record.url or key in seen:
            continue
        seen.add(key)
        batch.append(record)

    if not batch:
        return 0

    urls = {url for _, url in seen}
    existing = {
        (source, url)
        for source, url in db.query(NewsItem.source, NewsItem.url).filter(NewsItem.url.in_(urls)).all()
    }

    inserted = 0
    for record in batch:
        if (record.source, record.url) in existing:
            continue
        db.add(NewsItem(**{column: getattr(record, column) for column in RECORD_COLUMNS}))
        inserted += 1

    db.commit()
    logger.info(f"Saved {inserted} new items ({len(batch) - inserted} duplicates skipped)")
    return inserted


def get_recent_items(db: Session, limit: int = 100) -> List[Dict]:
    """Newest items across all sources."""
    items = (
        db.query(NewsItem)
        .order_by(NewsItem.published_at.desc(), NewsItem.id.desc())
        .limit(limit)
        .all()
    )
    return [item_to_dict(item) for item in items]


def get_items_by_source(db: Session, source: str, limit: int = 50) -> List[Dict]:
    """Newest items from one source."""
    items = (
        db.query(NewsItem)
        .filter(NewsItem.source == source)
        .order_by(NewsItem.published_at.desc(), NewsItem.id.desc())
        .limit(limit)
        .all()
    )
    return [item_to_dict(item) for item in items]


def get_items_by_date_range(db: Session, start: datetime, end: datetime, limit: int = 100) -> List[Dict]:
    """Items published between start and end (inclusive), newest first."""
    start, end = _aware(start).astimezone(timezone.utc), _aware(end).astimezone(timezone.utc)
    items = (
        db.query(NewsItem)
        .filter(NewsItem.published_at >= start, NewsItem.published_at <= end)
        .order_by(NewsItem.published_at.desc(), NewsItem.id.desc())
        .limit(limit)
        .all()
    )
    return [item_to_dict(item) for item in items]


def get_item(db: Session, item_id: int) -> Optional[NewsItem]:
    return db.query(NewsItem).filter(NewsItem.id == item_id).first()


def update_item_content(db: Session, item_id: int, edited_content: str) -> Optional[Dict]:
    """
    Store dashboard edits for an item.

    Returns:
        Updated item dict, or None if the item does not exist
    """
    item = get_item(db, item_id)
    if item is None:
        return None
    item.edited_content = edited_content
    item.updated_at = utc_now()
    db.commit()
    db.refresh(item)
    return item_to_dict(item)
