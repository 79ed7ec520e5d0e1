"""Tests for the REST API."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from pattern_hub import __version__
from pattern_hub.api.app import INTERNAL_ERROR, UPLOAD_LIMIT_MESSAGE, VOTE_LIMIT_MESSAGE, create_app
from pattern_hub.api.ratelimit import FixedWindowRateLimiter
from pattern_hub.db import ItemDB, PatternRecord, Session, SessionStore, StorageFailure

RECORD = PatternRecord(id=7, type='prompt', title='Code review', description='Reviews code',
                       content='Review this code.', tags=['python'])

SESSION = Session(user_id=3, username='alice', expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc))

REVIEW_PROMPT = "Review this code for readability and suggest improvements."


def submission(**overrides):
    data = {
        'type': 'prompt',
        'title': 'Code review',
        'description': 'Reviews code',
        'content': REVIEW_PROMPT,
    }
    data.update(overrides)
    return data


class FakeItems:
    """Pattern store in memory, with the read side mocked."""

    def __init__(self):
        self.rows = {}
        self.tag_ids = {'python': 100, 'git': 101}
        self.links = []
        self.get = Mock(return_value=RECORD)
        self.list = Mock(return_value=[RECORD])
        self.search = Mock(return_value=[RECORD])
        self.popular_tags = Mock(return_value=[{'name': 'python', 'count': 2}])

    def find_by_hash(self, file_hash, content_type):
        for item_id, item in self.rows.items():
            if item.file_hash == file_hash and item.type == content_type:
                return item_id
        return None

    def get_tag_id(self, name):
        return self.tag_ids.get(name)

    def insert_item(self, item):
        item_id = len(self.rows) + 1
        self.rows[item_id] = item
        return item_id

    def add_item_tag(self, item_id, tag_id):
        self.links.append((item_id, tag_id))


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def items():
    return FakeItems()


@pytest.fixture
def votes():
    votes = Mock()
    votes.cast_vote.return_value = {'votes_up': 1, 'votes_down': 0}
    return votes


@pytest.fixture
def sessions():
    sessions = Mock()
    sessions.get_session.side_effect = lambda token: SESSION if token == 'good' else None
    return sessions


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def make_client(items, votes, sessions, clock, mock_config, logger):
    def _make(**config_overrides):
        app = create_app(
            items=items,
            votes=votes,
            sessions=sessions,
            limiter=FixedWindowRateLimiter(clock=clock),
            config=replace(mock_config, **config_overrides),
            logger=logger,
        )
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()


AUTH = {'X-Session-Id': 'good'}


class TestCreateApp:
    """Test app construction."""

    def test_default_stores(self, mock_config, logger):
        """Should build Supabase-backed stores without touching the database."""
        api = create_app(config=mock_config, logger=logger).state.api

        assert isinstance(api.items, ItemDB)
        assert isinstance(api.sessions, SessionStore)
        assert api.sessions.ttl == timedelta(hours=24)
        assert api.pipeline.store is api.items


class TestHealth:
    """Test GET /api/health."""

    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ok'
        assert data['version'] == __version__
        assert 'timestamp' in data


class TestReadEndpoints:
    """Test list, get, search and tags."""

    def test_list_passes_filters(self, client, items):
        response = client.get('/api/items', params={
            'type': 'hook', 'sort': 'top', 'limit': '5', 'user': 'alice', 'tag': 'git', 'timeframe': 'week',
        })

        assert response.status_code == 200
        assert response.json()['total'] == 1
        assert response.json()['items'][0]['title'] == 'Code review'
        items.list.assert_called_once_with(
            content_type='hook', sort='top', limit='5', offset=0, username='alice', tag='git', timeframe='week',
        )

    def test_get_item(self, client, items):
        response = client.get('/api/items/7')

        assert response.status_code == 200
        assert response.json()['tags'] == ['python']
        items.get.assert_called_once_with('7')

    def test_get_missing(self, client, items):
        items.get.return_value = None

        response = client.get('/api/items/99')

        assert response.status_code == 404
        assert response.json() == {'error': 'Item not found'}

    def test_search_requires_query(self, client):
        response = client.get('/api/search')

        assert response.status_code == 400
        assert response.json() == {'error': 'Query parameter required'}

    def test_search(self, client, items):
        """Should split comma-separated tags."""
        response = client.get('/api/search', params={'q': 'code', 'type': 'prompt', 'tags': 'python, git,'})

        assert response.status_code == 200
        assert response.json()['query'] == 'code'
        assert len(response.json()['results']) == 1
        items.search.assert_called_once_with('code', content_type='prompt', tags=['python', 'git'])

    def test_tags(self, client):
        assert client.get('/api/tags').json() == [{'name': 'python', 'count': 2}]

    def test_storage_failure(self, client, items):
        """Should hide storage errors behind a generic 500."""
        items.list.side_effect = StorageFailure("Failed to list items")

        response = client.get('/api/items')

        assert response.status_code == 500
        assert response.json() == {'error': INTERNAL_ERROR}


class TestCreateItem:
    """Test POST /api/items."""

    def test_created(self, client, items):
        response = client.post('/api/items', json=submission(tags=['python']))

        assert response.status_code == 201
        assert response.json() == {'id': 1, 'message': 'Item created successfully'}
        assert response.headers['X-RateLimit-Limit'] == '30'
        assert response.headers['X-RateLimit-Remaining'] == '29'
        assert items.links == [(1, 100)]

    def test_submitter_from_session(self, client, items):
        client.post('/api/items', json=submission(), headers=AUTH)

        assert items.rows[1].submitter_id == 3

    def test_anonymous_submitter(self, client, items):
        client.post('/api/items', json=submission())

        assert items.rows[1].submitter_id is None

    def test_warnings(self, client):
        """Should join warnings and report their category and count."""
        response = client.post('/api/items', json=submission(
            type='hook', title='Cleanup', description='Clears files',
            content='{"hooks":[{"type":"command","command":"rm -rf /tmp/x"}]}',
        ))

        assert response.status_code == 201
        data = response.json()
        assert data['warning'].startswith("Security: Contains potentially dangerous patterns")
        assert " | Structure: " in data['warning']
        assert data['warning_category'] == 'security_warning'
        assert data['warning_count'] == 2

    def test_invalid_json(self, client):
        response = client.post('/api/items', content=b'{bad', headers={'Content-Type': 'application/json'})

        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid JSON format in request body'}

    def test_deeply_nested_json(self, client):
        """Should answer 400 rather than crash on pathological nesting."""
        body = b'{"x": ' + b'[' * 100000 + b']' * 100000 + b'}'

        response = client.post('/api/items', content=body, headers={'Content-Type': 'application/json'})

        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid JSON format in request body'}

    def test_schema_error(self, client):
        response = client.post('/api/items', json=submission(type='script'))

        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid content type', 'field': 'type'}

    def test_structure_error(self, client):
        response = client.post('/api/items', json=submission(content='hi'))

        assert response.status_code == 400
        assert response.json() == {'error': 'Prompt is too short to be useful', 'validation_type': 'structure'}

    def test_blocked(self, client, items):
        response = client.post('/api/items', json=submission(content='BUY NOW CLICK FREE LIMITED TODAY'))

        assert response.status_code == 400
        assert response.json() == {
            'error': 'Content appears to be spam or promotional material',
            'blocked': True,
            'category': 'spam',
        }
        assert items.rows == {}

    def test_duplicate(self, client):
        first = client.post('/api/items', json=submission())
        second = client.post('/api/items', json=submission(title='Copy'))

        assert second.status_code == 409
        assert second.json() == {'error': 'Duplicate content already exists', 'existing_id': first.json()['id']}

    def test_store_failure(self, client, items, logger):
        """Should answer 500 and log when storage fails mid-pipeline."""
        items.find_by_hash = Mock(side_effect=StorageFailure("Failed to look up content hash"))

        response = client.post('/api/items', json=submission())

        assert response.status_code == 500
        assert response.json() == {'error': INTERNAL_ERROR}
        logger.exception.assert_called_once()

    def test_rate_limited(self, make_client, clock):
        """Should refuse past the hourly limit, then allow after the window."""
        client = make_client(upload_rate_limit=1)

        assert client.post('/api/items', json=submission()).status_code == 201
        response = client.post('/api/items', json=submission(content='Explain this stack trace please.'))

        assert response.status_code == 429
        assert response.json() == {'error': UPLOAD_LIMIT_MESSAGE, 'retryAfter': 3600}
        assert response.headers['Retry-After'] == '3600'
        assert response.headers['X-RateLimit-Remaining'] == '0'

        clock.now += 3600
        assert client.post('/api/items', json=submission(content='Explain this stack trace please.')).status_code == 201

    def test_rate_limit_per_client(self, make_client):
        client = make_client(upload_rate_limit=1)

        first = client.post('/api/items', json=submission(), headers={'CF-Connecting-IP': '203.0.113.1'})
        second = client.post('/api/items', json=submission(title='Copy'), headers={'CF-Connecting-IP': '203.0.113.2'})

        assert first.status_code == 201
        assert second.status_code == 409


class TestVote:
    """Test POST /api/items/{id}/vote."""

    def test_requires_auth(self, client, votes):
        response = client.post('/api/items/7/vote', json={'vote': 1})

        assert response.status_code == 401
        assert response.json() == {'error': 'Authentication required'}
        votes.cast_vote.assert_not_called()

    def test_vote(self, client, votes):
        response = client.post('/api/items/7/vote', json={'vote': 1}, headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {'votes_up': 1, 'votes_down': 0}
        votes.cast_vote.assert_called_once_with(3, '7', 1)

    def test_cookie_session(self, client, votes):
        response = client.post('/api/items/7/vote', json={'vote': -1}, headers={'Cookie': 'session_id=good'})

        assert response.status_code == 200
        votes.cast_vote.assert_called_once_with(3, '7', -1)

    @pytest.mark.parametrize("body", [{'vote': True}, {'vote': 0}, {'vote': '1'}, {}, [1]])
    def test_invalid_vote(self, client, votes, body):
        """Should reject anything but the numbers 1 and -1."""
        response = client.post('/api/items/7/vote', json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid vote value'}
        votes.cast_vote.assert_not_called()

    def test_invalid_body(self, client):
        response = client.post('/api/items/7/vote', content=b'nope', headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {'error': 'Invalid request body'}

    def test_rate_limited(self, make_client):
        """Should count every attempt against the per-minute limit."""
        client = make_client(vote_rate_limit=1)

        client.post('/api/items/7/vote', json={'vote': 1})
        response = client.post('/api/items/7/vote', json={'vote': 1}, headers=AUTH)

        assert response.status_code == 429
        assert response.json() == {'error': VOTE_LIMIT_MESSAGE, 'retryAfter': 60}


class TestAuth:
    """Test the auth endpoints."""

    def test_status_anonymous(self, client):
        assert client.get('/api/auth/status').json() == {'authenticated': False}

    def test_status_authenticated(self, client):
        response = client.get('/api/auth/status', headers=AUTH)

        assert response.json() == {'authenticated': True, 'username': 'alice', 'userId': 3}

    def test_unknown_session(self, client):
        assert client.get('/api/auth/status', headers={'X-Session-Id': 'bad'}).json() == {'authenticated': False}

    def test_logout(self, client, sessions):
        """Should delete the session and clear the cookie."""
        response = client.post('/api/auth/logout', headers=AUTH)

        assert response.json() == {'success': True}
        sessions.delete_session.assert_called_once_with('good')
        assert response.headers['set-cookie'].startswith('session_id=')

    def test_logout_without_session(self, client, sessions):
        response = client.post('/api/auth/logout')

        assert response.json() == {'success': True}
        sessions.delete_session.assert_not_called()
