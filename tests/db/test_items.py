"""Tests for ItemDB."""

from unittest.mock import ANY, Mock

import pytest

from pattern_hub.db.client import StorageFailure
from pattern_hub.db.items import ItemDB, PatternRecord, clamp_page
from pattern_hub.moderation.pipeline import NewItem

ITEM_ROW = {
    'id': 7,
    'type': 'prompt',
    'title': 'Code review',
    'description': 'Reviews code',
    'content': 'Review this code.',
    'submitter_id': 3,
    'votes_up': 5,
    'votes_down': 2,
    'has_warnings': True,
    'warning_flags': '["Structure: short"]',
    'created_at': '2026-01-01T00:00:00+00:00',
    'submitter': {'username': 'alice'},
    'item_tags': [{'tags': {'name': 'python'}}, {'tags': {'name': 'testing'}}],
}


@pytest.fixture
def db(logger, mock_supabase):
    return ItemDB(client=mock_supabase, logger=logger)


def new_item(**overrides):
    fields = dict(type='prompt', title='T', description='D', content='C', file_hash='abc')
    fields.update(overrides)
    return NewItem(**fields)


class TestPatternRecord:
    """Test PatternRecord.from_row."""

    def test_from_row(self):
        """Should flatten the submitter and tag embeds."""
        record = PatternRecord.from_row(ITEM_ROW)

        assert record.id == 7
        assert record.submitter_name == 'alice'
        assert record.tags == ['python', 'testing']
        assert record.warning_flags == ['Structure: short']
        assert record.score == 3

    def test_defaults(self):
        """Should default missing counters and the submitter name."""
        record = PatternRecord.from_row({'id': 1, 'type': 'hook'})

        assert record.submitter_name == 'anonymous'
        assert record.votes_up == 0
        assert record.warning_flags == []
        assert record.tags == []

    def test_flags_as_list(self):
        assert PatternRecord.from_row({'id': 1, 'warning_flags': ['a']}).warning_flags == ['a']

    def test_to_dict(self):
        data = PatternRecord.from_row(ITEM_ROW).to_dict()

        assert data['title'] == 'Code review'
        assert data['tags'] == ['python', 'testing']


class TestClampPage:
    """Test clamp_page."""

    @pytest.mark.parametrize("limit,offset,expected", [
        (10, 5, (10, 5)),
        ('500', '0', (100, 0)),
        (0, -4, (1, 0)),
        ('abc', None, (30, 0)),
    ])
    def test_clamp(self, limit, offset, expected):
        """Should coerce paging into range."""
        assert clamp_page(limit, offset) == expected


class TestPatternStore:
    """Test the moderation store operations."""

    def test_find_by_hash(self, db, mock_supabase):
        """Should filter on hash and type."""
        query = mock_supabase.setup_select_query('items', data=[{'id': 4}])

        assert db.find_by_hash('abc', 'prompt') == 4
        query.eq.assert_any_call('file_hash', 'abc')
        query.eq.assert_any_call('type', 'prompt')

    def test_find_by_hash_missing(self, db):
        assert db.find_by_hash('abc', 'prompt') is None

    def test_get_tag_id(self, db, mock_supabase):
        mock_supabase.configure_table_data('tags', [{'id': 100}])

        assert db.get_tag_id('python') == 100

    def test_insert_item(self, db, mock_supabase):
        """Should store warnings as flags and return the new id."""
        insert = mock_supabase.spy('items', 'insert')

        item_id = db.insert_item(new_item(warnings=['Security: risky'], submitter_id=3))

        assert item_id == 1
        row = insert.call_args.args[0]
        assert row['file_hash'] == 'abc'
        assert row['submitter_id'] == 3
        assert row['has_warnings'] is True
        assert row['warning_flags'] == ['Security: risky']
        assert row['vote_score'] == 0

    def test_insert_item_without_warnings(self, db, mock_supabase):
        insert = mock_supabase.spy('items', 'insert')

        db.insert_item(new_item())

        row = insert.call_args.args[0]
        assert row['has_warnings'] is False
        assert row['warning_flags'] is None

    def test_insert_without_id(self, db, mock_supabase):
        """Should fail when the insert returns no row."""
        empty = Mock(execute=Mock(return_value=Mock(data=[])))
        mock_supabase.table('items').insert = Mock(return_value=empty)

        with pytest.raises(StorageFailure, match="no item id"):
            db.insert_item(new_item())

    def test_add_item_tag(self, db, mock_supabase):
        insert = mock_supabase.spy('item_tags', 'insert')

        db.add_item_tag(1, 100)

        insert.assert_called_once_with({'item_id': 1, 'tag_id': 100})


class TestReads:
    """Test get, list and search."""

    def test_get(self, db, mock_supabase):
        mock_supabase.configure_table_data('items', [ITEM_ROW])

        record = db.get(7)

        assert record.title == 'Code review'
        assert record.submitter_name == 'alice'

    def test_get_missing(self, db):
        assert db.get(99) is None

    def test_list_new(self, db, mock_supabase):
        """Should order newest first and page with range."""
        query = mock_supabase.setup_select_query('items', data=[ITEM_ROW])

        records = db.list(sort='new', limit=10, offset=20)

        assert [r.id for r in records] == [7]
        query.order.assert_called_once_with('created_at', desc=True)
        query.range.assert_called_once_with(20, 29)

    def test_list_hot(self, db, mock_supabase):
        """Should order by net score then recency."""
        query = mock_supabase.setup_select_query('items', data=[])

        db.list(sort='bogus', limit=500, offset=-1)

        assert query.order.call_args_list[0].args == ('vote_score',)
        assert query.order.call_args_list[1].args == ('created_at',)
        query.range.assert_called_once_with(0, 99)

    def test_list_top_timeframe(self, db, mock_supabase):
        """Should restrict top lists to the timeframe."""
        query = mock_supabase.setup_select_query('items', data=[])

        db.list(sort='top', timeframe='week')

        query.gte.assert_called_once_with('created_at', ANY)
        query.order.assert_called_once_with('votes_up', desc=True)

    def test_list_timeframe_ignored_for_new(self, db, mock_supabase):
        query = mock_supabase.setup_select_query('items', data=[])

        db.list(sort='new', timeframe='week')

        query.gte.assert_not_called()

    def test_list_type_filter(self, db, mock_supabase):
        query = mock_supabase.setup_select_query('items', data=[])

        db.list(content_type='hook')

        query.eq.assert_called_once_with('type', 'hook')

    def test_list_unknown_user(self, db, mock_supabase):
        """Should return nothing for a username that does not exist."""
        query = mock_supabase.setup_select_query('items', data=[ITEM_ROW])

        assert db.list(username='ghost') == []
        query.execute.assert_not_called()

    def test_list_by_user(self, db, mock_supabase):
        mock_supabase.configure_table_data('users', [{'id': 3}])
        query = mock_supabase.setup_select_query('items', data=[ITEM_ROW])

        db.list(username='alice')

        query.eq.assert_called_once_with('submitter_id', 3)

    def test_list_by_tag(self, db, mock_supabase):
        """Should resolve the tag to item ids, once each."""
        mock_supabase.configure_table_data('tags', [{'id': 100}])
        mock_supabase.configure_table_data('item_tags', [{'item_id': 1}, {'item_id': 2}, {'item_id': 1}])
        query = mock_supabase.setup_select_query('items', data=[])

        db.list(tag='python')

        query.in_.assert_called_once_with('id', [1, 2])

    def test_search(self, db, mock_supabase):
        """Should match title or description, stripping filter syntax."""
        query = mock_supabase.setup_select_query('items', data=[ITEM_ROW])

        results = db.search('code,(review)')

        assert [r.id for r in results] == [7]
        query.or_.assert_called_once_with('title.ilike.*code  review*,description.ilike.*code  review*')
        query.order.assert_called_once_with('votes_up', desc=True)
        query.limit.assert_called_once_with(30)

    def test_search_blank_term(self, db, mock_supabase):
        """Should not query for a term made only of filter syntax."""
        assert db.search('(*)') == []
        mock_supabase.table.assert_not_called()

    def test_search_unknown_tags(self, db, mock_supabase):
        mock_supabase.setup_select_query('items', data=[ITEM_ROW])

        assert db.search('code', tags=['nope']) == []

    def test_popular_tags(self, db, mock_supabase):
        """Should skip unused tags and sort by usage."""
        mock_supabase.configure_table_data('tags', [
            {'name': 'python', 'item_tags': [{'count': 3}]},
            {'name': 'git', 'item_tags': [{'count': 0}]},
            {'name': 'rails', 'item_tags': [{'count': 5}]},
        ])

        assert db.popular_tags() == [{'name': 'rails', 'count': 5}, {'name': 'python', 'count': 3}]


class TestFailures:
    """Test error wrapping."""

    def test_not_configured(self, db, mock_supabase):
        mock_supabase.is_configured = False

        with pytest.raises(StorageFailure, match="not configured"):
            db.get(1)

    def test_client_error_wrapped(self, db, mock_supabase, logger):
        """Should log and wrap client exceptions."""
        mock_supabase.table.side_effect = RuntimeError("connection reset")

        with pytest.raises(StorageFailure, match="Failed to get item 1"):
            db.get(1)

        logger.error.assert_called_once()
