"""Session resolution for inbound requests."""

from typing import Optional

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from pattern_hub.db.sessions import Session, SessionStore

SESSION_HEADER = "X-Session-Id"
SESSION_COOKIE = "session_id"


def session_token(request: Request) -> Optional[str]:
    """Token from the X-Session-Id header, falling back to the session cookie."""
    return request.headers.get(SESSION_HEADER) or request.cookies.get(SESSION_COOKIE) or None


async def current_session(request: Request, sessions: SessionStore) -> Optional[Session]:
    token = session_token(request)
    if not token:
        return None
    return await run_in_threadpool(sessions.get_session, token)
