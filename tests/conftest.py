"""
Shared pytest fixtures for Pattern Hub tests

Mocks for the Supabase client, config and logger, plus an in-memory
pattern store for exercising the moderation pipeline without a database.
"""

import sys
from itertools import count
from pathlib import Path
import pytest
from unittest.mock import Mock
from typing import Dict, Any, List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# ============================================================================
# Mock Helper Classes
# ============================================================================

class SupabaseQueryBuilder:
    """
    Fluent query mock: every filter method returns the same query so chains
    like .select().eq().in_().range().execute() work, and execute() returns
    a response whose .data is the configured data.
    """

    CHAIN_METHODS = (
        "eq", "neq", "in_", "limit", "offset", "range", "order",
        "gte", "lte", "gt", "lt", "or_", "ilike", "insert", "update", "upsert", "delete",
    )

    def __init__(self, data: Any = None):
        self.data = data if data is not None else []
        self._is_single = False
        self._query = Mock()
        self._setup_chain()

    def _setup_chain(self):
        for name in self.CHAIN_METHODS:
            setattr(self._query, name, Mock(return_value=self._query))
        self._query.select = Mock(return_value=self._query)

        def single_side_effect():
            self._is_single = True
            return self._query
        self._query.single = Mock(side_effect=single_side_effect)
        self._query.maybe_single = Mock(side_effect=single_side_effect)

        def execute_side_effect():
            response = Mock()
            if self._is_single:
                if isinstance(self.data, list):
                    response.data = self.data[0] if self.data else None
                else:
                    response.data = self.data
            elif isinstance(self.data, dict):
                response.data = [self.data]
            else:
                response.data = self.data
            return response

        self._query.execute = Mock(side_effect=execute_side_effect)

    def build(self):
        """Return the configured query mock."""
        return self._query


class SupabaseTableMock:
    """
    Mock for a Supabase table.

    select() answers with default_data; insert() echoes the inserted row
    with a generated id; update() and delete() answer with no rows.
    """

    def __init__(self, default_data: Any = None):
        self.default_data = default_data if default_data is not None else []
        self._ids = count(1)

    def select(self, *args, **kwargs):
        return SupabaseQueryBuilder(self.default_data).build()

    def insert(self, *args, **kwargs):
        if args and isinstance(args[0], dict):
            row = dict(args[0])
            row.setdefault('id', next(self._ids))
            inserted = [row]
        elif args and isinstance(args[0], list):
            inserted = args[0]
        else:
            inserted = []
        return SupabaseQueryBuilder(inserted).build()

    def update(self, *args, **kwargs):
        return SupabaseQueryBuilder([]).build()

    def upsert(self, *args, **kwargs):
        return SupabaseQueryBuilder([]).build()

    def delete(self, *args, **kwargs):
        return SupabaseQueryBuilder([]).build()


class MockSupabaseClient:
    """
    Supabase client mock with the Pattern Hub tables pre-configured.

    Usage:
        mock_supabase = MockSupabaseClient()
        mock_supabase.configure_table_data('items', [{'id': 1}])
        table = mock_supabase.table('items')
    """

    TABLES = ('items', 'tags', 'item_tags', 'votes', 'sessions', 'users')

    def __init__(self):
        self._tables: Dict[str, SupabaseTableMock] = {name: SupabaseTableMock() for name in self.TABLES}
        self.is_configured = True

        def table_side_effect(table_name: str):
            if table_name not in self._tables:
                self._tables[table_name] = SupabaseTableMock()
            return self._tables[table_name]

        self.table = Mock(side_effect=table_side_effect)
        self.client = self

    def configure_table_data(self, table_name: str, data: Any):
        """Set what select() on this table returns."""
        if table_name in self._tables:
            self._tables[table_name].default_data = data
        else:
            self._tables[table_name] = SupabaseTableMock(data)

    def setup_select_query(self, table_name: str, data: Any = None, single: bool = False):
        """
        Make every select() on a table return one shared query mock, so the
        filters applied to it can be asserted.
        """
        table = self.table(table_name)
        builder = SupabaseQueryBuilder(table.default_data if data is None else data)
        query = builder.build()
        if single:
            builder._is_single = True
        table.select = Mock(return_value=query)
        return query

    def spy(self, table_name: str, method: str) -> Mock:
        """Wrap a table write method so calls are recorded but still answered."""
        table = self.table(table_name)
        wrapped = Mock(wraps=getattr(table, method))
        setattr(table, method, wrapped)
        return wrapped


class InMemoryPatternStore:
    """PatternStore backed by dicts, with a fixed set of curated tags."""

    def __init__(self, tags: Optional[List[str]] = None):
        self.items: Dict[int, Any] = {}
        self.tag_ids: Dict[str, int] = {name: i for i, name in enumerate(tags or [], start=100)}
        self.item_tags: List[tuple] = []
        self._ids = count(1)

    def find_by_hash(self, file_hash: str, content_type: str) -> Optional[int]:
        for item_id, item in self.items.items():
            if item.file_hash == file_hash and item.type == content_type:
                return item_id
        return None

    def get_tag_id(self, name: str) -> Optional[int]:
        return self.tag_ids.get(name)

    def insert_item(self, item) -> int:
        item_id = next(self._ids)
        self.items[item_id] = item
        return item_id

    def add_item_tag(self, item_id: int, tag_id: int) -> None:
        self.item_tags.append((item_id, tag_id))


# ============================================================================
# Base Fixtures
# ============================================================================

@pytest.fixture
def mock_config():
    """Config with test defaults."""
    from pattern_hub.config.settings import Config

    return Config(
        environment="test",
        log_level="DEBUG",
        http_port=8000,
        api_url="http://localhost:8000",
        session_ttl_hours=24,
        upload_rate_limit=30,
        vote_rate_limit=10,
    )


@pytest.fixture
def logger():
    """Standard mock logger for all tests."""
    from pattern_hub.utils.logger import Logger
    return Mock(spec=Logger)


@pytest.fixture
def mock_supabase():
    """A MockSupabaseClient; use configure_table_data() for test data."""
    return MockSupabaseClient()


@pytest.fixture
def pattern_store():
    return InMemoryPatternStore(tags=["python", "testing", "git", "security", "docs", "rails"])


@pytest.fixture
def mock_context():
    """Standard ToolContext for tool tests."""
    from pattern_hub.mcp_types.tools import ToolContext

    return ToolContext(
        userId='test_user',
        requestId='test_req_123',
        timestamp=1234567890.0,
        toolName=None
    )


@pytest.fixture
def supabase_patch(mock_supabase):
    """
    Context manager that makes get_supabase_client() return the mock.

    Usage:
        def test_something(supabase_patch):
            with supabase_patch() as mock_supabase:
                mock_supabase.configure_table_data('items', [{'id': 1}])
    """
    from contextlib import contextmanager

    @contextmanager
    def _patch():
        with pytest.MonkeyPatch().context() as m:
            m.setattr('pattern_hub.db.base.get_supabase_client', lambda: mock_supabase)
            yield mock_supabase

    return _patch
