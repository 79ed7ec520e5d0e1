"""Tests for request session resolution."""

from unittest.mock import Mock

import pytest
from starlette.requests import Request

from pattern_hub.api.auth import current_session, session_token


def make_request(**headers):
    return Request({
        "type": "http",
        "headers": [(k.replace("_", "-").lower().encode(), v.encode()) for k, v in headers.items()],
    })


class TestSessionToken:
    """Test session_token."""

    def test_header_wins(self):
        request = make_request(x_session_id="from-header", cookie="session_id=from-cookie")

        assert session_token(request) == "from-header"

    def test_cookie(self):
        assert session_token(make_request(cookie="session_id=from-cookie")) == "from-cookie"

    def test_none(self):
        assert session_token(make_request()) is None


class TestCurrentSession:
    """Test current_session."""

    @pytest.mark.asyncio
    async def test_looks_up_token(self):
        sessions = Mock()

        session = await current_session(make_request(x_session_id="tok"), sessions)

        assert session is sessions.get_session.return_value
        sessions.get_session.assert_called_once_with("tok")

    @pytest.mark.asyncio
    async def test_no_token(self):
        """Should not hit the store without a token."""
        sessions = Mock()

        assert await current_session(make_request(), sessions) is None
        sessions.get_session.assert_not_called()
