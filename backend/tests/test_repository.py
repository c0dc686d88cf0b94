"""
Tests for the news item repository.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from api.database import NewsItem
from api import repository


class TestSaveItems:
    """Test inserting records."""

    def test_inserts_new_records(self, db_session, sample_records):
        inserted = repository.save_items(db_session, sample_records)

        assert inserted == 3
        assert db_session.query(NewsItem).count() == 3

    def test_skips_stored_records(self, db_session, sample_records):
        repository.save_items(db_session, sample_records[:2])

        inserted = repository.save_items(db_session, sample_records)

        assert inserted == 1
        assert db_session.query(NewsItem).count() == 3

    def test_skips_repeats_within_batch(self, db_session, sample_records):
        inserted = repository.save_items(db_session, [sample_records[0], dict(sample_records[0])])

        assert inserted == 1

    def test_same_url_from_other_source_is_kept(self, db_session, sample_records):
        other = dict(sample_records[0], source='decrypt')

        assert repository.save_items(db_session, [sample_records[0], other]) == 2

    def test_records_without_key_are_skipped(self, db_session):
        assert repository.save_items(db_session, [{'title': 'No source or url'}]) == 0
        assert repository.save_items(db_session, []) == 0

    def test_unique_constraint(self, db_session, sample_records):
        repository.save_items(db_session, sample_records[:1])
        record = sample_records[0]
        db_session.add(NewsItem(
            source=record['source'],
            url=record['url'],
            title='Duplicate',
            description='',
            published_at=record['published_at'],
            fetched_at=record['fetched_at'],
        ))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestQueries:
    """Test reading records back."""

    def test_recent_items_newest_first(self, db_session, sample_records):
        repository.save_items(db_session, sample_records)

        items = repository.get_recent_items(db_session)

        assert [i['title'] for i in items] == [
            'Bitcoin ETF inflows hit record',
            'Ethereum upgrade goes live',
            'SEC publishes new crypto rules',
        ]
        assert items[0]['published_at'] == '2025-03-18T12:00:00+00:00'
        assert items[0]['full_content'] == '# Bitcoin ETF inflows hit record'
        assert items[1]['description'] == ''

    def test_limit(self, db_session, sample_records):
        repository.save_items(db_session, sample_records)

        assert len(repository.get_recent_items(db_session, limit=2)) == 2

    def test_items_by_source(self, db_session, sample_records):
        repository.save_items(db_session, sample_records)

        items = repository.get_items_by_source(db_session, 'coindesk')

        assert [i['source'] for i in items] == ['coindesk', 'coindesk']
        assert repository.get_items_by_source(db_session, 'cointelegraph') == []

    def test_items_by_date_range(self, db_session, sample_records):
        repository.save_items(db_session, sample_records)

        items = repository.get_items_by_date_range(
            db_session,
            datetime(2025, 3, 17, tzinfo=timezone.utc),
            datetime(2025, 3, 17, 23, 59, tzinfo=timezone.utc),
        )

        assert [i['source'] for i in items] == ['decrypt']

    def test_items_by_date_range_naive_bounds_are_utc(self, db_session, sample_records):
        repository.save_items(db_session, sample_records)

        items = repository.get_items_by_date_range(
            db_session, datetime(2025, 3, 16), datetime(2025, 3, 18, 12, 0)
        )

        assert len(items) == 3


class TestUpdateContent:
    """Test dashboard edits."""

    def test_update_item_content(self, db_session, sample_records):
        repository.save_items(db_session, sample_records[:1])
        item_id = db_session.query(NewsItem).first().id

        updated = repository.update_item_content(db_session, item_id, 'Edited text')

        assert updated['edited_content'] == 'Edited text'
        assert updated['full_content'] == '# Bitcoin ETF inflows hit record'

    def test_edits_survive_rescrape(self, db_session, sample_records):
        repository.save_items(db_session, sample_records[:1])
        item_id = db_session.query(NewsItem).first().id
        repository.update_item_content(db_session, item_id, 'Edited text')

        repository.save_items(db_session, sample_records[:1])

        assert repository.get_item(db_session, item_id).edited_content == 'Edited text'

    def test_update_missing_item(self, db_session):
        assert repository.update_item_content(db_session, 999, 'x') is None
