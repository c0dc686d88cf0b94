"""Shared utilities for scrapers."""

from .normalizers import (
    clean_text,
    normalize_url,
    normalize_date,
    coerce_datetime,
    sanitize_news_item,
)
from .extractors import (
    select_first,
    select_text,
    select_attr,
    extract_image_url,
    extract_date_value,
    extract_article,
    detect_blocker,
    render_article_text,
)
from .output import save_results, cleanup_old_output_files

__all__ = [
    'clean_text',
    'normalize_url',
    'normalize_date',
    'coerce_datetime',
    'sanitize_news_item',
    'select_first',
    'select_text',
    'select_attr',
    'extract_image_url',
    'extract_date_value',
    'extract_article',
    'detect_blocker',
    'render_article_text',
    'save_results',
    'cleanup_old_output_files',
]
