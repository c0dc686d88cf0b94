#!/usr/bin/env python3
"""
Command line interface for the crypto news scrapers.

Usage:
    cd backend
    python -m scrapers.cli <command> [options]

Examples:
    python -m scrapers.cli parse                     # All sites
    python -m scrapers.cli parse coindesk decrypt    # Selected sites
    python -m scrapers.cli parse --concurrency 3 --headed
    python -m scrapers.cli list
    python -m scrapers.cli test-db
    python -m scrapers.cli cleanup --days 14
"""

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from api.config import settings
from api.logging_config import setup_logging
from scrapers.base import Colors, NewsRecord
from scrapers.config import get_site_summary
from scrapers.manager import ScraperManager, SCRAPER_REGISTRY, ALL_SITES
from scrapers.utils.output import save_results, cleanup_old_output_files

logger = logging.getLogger("scraper.cli")


def save_output(records: List[NewsRecord]):
    """Write one JSON output file per source."""
    by_source: Dict[str, List[NewsRecord]] = {}
    for record in records:
        by_source.setdefault(record.source, []).append(record)
    for source, source_records in by_source.items():
        save_results(source_records, source, settings.output_dir)


def save_to_database(records: List[NewsRecord]) -> int:
    from api.database import SessionLocal, init_db
    from api.repository import save_items

    init_db()
    db = SessionLocal()
    try:
        return save_items(db, records)
    finally:
        db.close()


async def run_parse(sites: List[str], headless: bool, concurrency: Optional[int]) -> List[NewsRecord]:
    manager = ScraperManager(concurrency=concurrency)
    records = await manager.run_batch(sites or ALL_SITES, headless=headless)

    summary = manager.get_results_summary()
    print(f"\n{'='*60}")
    print(f"Parsed {summary['total_records']} records from {summary['successful']}/{summary['total_sites']} sites")
    print(f"{'='*60}")
    for key, site in summary['sites'].items():
        status = Colors.green("OK  ") if site['success'] else Colors.red("FAIL")
        detail = f"{site['total']} records" if site['success'] else site['error']
        print(f"  {status} {key:16} {detail}")
    print()
    return records


def cmd_parse(args) -> int:
    unknown = [s for s in args.sites if s != ALL_SITES and s not in SCRAPER_REGISTRY]
    if unknown:
        # Unknown sites are reported by the batch itself; warn early so typos are obvious
        logger.warning(f"Unknown sites will be skipped: {', '.join(unknown)}")

    records = asyncio.run(run_parse(args.sites, headless=not args.headed, concurrency=args.concurrency))

    if args.no_save:
        logger.info("Skipping database and output files (--no-save)")
        return 0 if records else 1

    inserted = save_to_database(records)
    print(f"Saved {inserted} new items to the database")
    if settings.save_output:
        save_output(records)
    return 0 if records else 1


def cmd_list(args) -> int:
    """List all configured scrapers."""
    print(f"\n{'='*60}")
    print("Available Scrapers")
    print(f"{'='*60}\n")

    for site in get_site_summary():
        status = "✅" if site['enabled'] else "⏳"
        impl = "IMPL" if site['key'] in SCRAPER_REGISTRY else "TODO"
        print(f"{status} [{impl}] {site['key']:16} - {site['name']}")
        print(f"                     {site['url']}")
    return 0


def cmd_test_db(args) -> int:
    """Check the database connection by reading a few rows."""
    from api.database import SessionLocal, init_db
    from api.repository import get_recent_items

    init_db()
    db = SessionLocal()
    try:
        items = get_recent_items(db, limit=5)
    finally:
        db.close()

    print(f"Database OK ({settings.database_url}), showing {len(items)} recent items:")
    for item in items:
        print(f"  [{item['source']}] {item['published_at']} {item['title']}")
    return 0


def cmd_cleanup(args) -> int:
    removed = cleanup_old_output_files(settings.output_dir, days=args.days)
    print(f"Removed {removed} output directories older than {args.days} days")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='crypto-news', description='Crypto news scrapers')
    subparsers = parser.add_subparsers(dest='command', required=True)

    parse = subparsers.add_parser('parse', help='Run scrapers and store the results')
    parse.add_argument('sites', nargs='*', help=f"Site keys (default: {ALL_SITES})")
    parse.add_argument('--headed', action='store_true', help='Show the browser window')
    parse.add_argument('--concurrency', type=int, default=None,
                       help=f'Parallel browser sessions (default: {settings.batch_concurrency})')
    parse.add_argument('--no-save', action='store_true', help='Do not write to the database or output files')
    parse.set_defaults(func=cmd_parse)

    list_cmd = subparsers.add_parser('list', help='List configured sites')
    list_cmd.set_defaults(func=cmd_list)

    test_db = subparsers.add_parser('test-db', help='Check the database connection')
    test_db.set_defaults(func=cmd_test_db)

    cleanup = subparsers.add_parser('cleanup', help='Remove old JSON output files')
    cleanup.add_argument('-d', '--days', type=int, default=settings.output_retention_days,
                         help='Keep files newer than this many days')
    cleanup.set_defaults(func=cmd_cleanup)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
