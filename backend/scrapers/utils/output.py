"""
JSON output files for extraction runs.

Layout:
    <output_dir>/<source>/YYYY/MM/DD/<source>_<timestamp>.json
    <output_dir>/<source>.json           (latest run)
"""

import json
import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from ..base import NewsRecord

logger = logging.getLogger("scraper.output")


def save_results(
    records: List[NewsRecord],
    source: str,
    output_dir: Path,
    now: Optional[datetime] = None,
) -> Path:
    """
    Write records to a dated file and refresh the latest-run file.

    Returns:
        Path of the dated file
    """
    now = now or datetime.now(timezone.utc)
    day_dir = Path(output_dir) / source / now.strftime('%Y') / now.strftime('%m') / now.strftime('%d')
    day_dir.mkdir(parents=True, exist_ok=True)

    payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
    dated_file = day_dir / f"{source}_{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"
    dated_file.write_text(payload, encoding='utf-8')
    (Path(output_dir) / f"{source}.json").write_text(payload, encoding='utf-8')

    logger.info(f"Saved {len(records)} records to {dated_file}")
    return dated_file


def _day_of(day_dir: Path) -> Optional[datetime]:
    try:
        year, month, day = day_dir.parent.parent.name, day_dir.parent.name, day_dir.name
        return datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
    except ValueError:
        return None


def cleanup_old_output_files(output_dir: Path, days: int = 30, now: Optional[datetime] = None) -> int:
    """
    Remove dated output directories older than `days`.

    Empty month and year directories left behind are removed too.

    Returns:
        Number of day directories removed
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        logger.info(f"Output directory {output_dir} does not exist, nothing to clean")
        return 0

    now = now or datetime.now(timezone.utc)
    cutoff = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
    removed = 0

    for source_dir in sorted(p for p in output_dir.iterdir() if p.is_dir()):
        for day_dir in sorted(source_dir.glob('*/*/*')):
            if not day_dir.is_dir():
                continue
            day = _day_of(day_dir)
            if day is None or day >= cutoff:
                continue
            shutil.rmtree(day_dir)
            removed += 1
            logger.debug(f"Removed {day_dir}")

        for month_dir in sorted(source_dir.glob('*/*')):
            if month_dir.is_dir() and not any(month_dir.iterdir()):
                month_dir.rmdir()
        for year_dir in sorted(source_dir.glob('*')):
            if year_dir.is_dir() and not any(year_dir.iterdir()):
                year_dir.rmdir()

    logger.info(f"Removed {removed} output directories older than {days} days")
    return removed
