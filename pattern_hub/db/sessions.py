"""
Session store.

Opaque random tokens handed to clients; only their SHA-256 digests are
stored, each with an expiry.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pattern_hub.db.base import SupabaseDB
from pattern_hub.db.client import SupabaseClient
from pattern_hub.db.helpers import get_first, utc_now
from pattern_hub.utils.logger import Logger

DEFAULT_TTL = timedelta(hours=24)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class Session:
    user_id: Any
    username: str
    expires_at: datetime


class SessionStore(SupabaseDB):
    """create_session / get_session / delete_session over the sessions table."""

    logger_name = "session-store"

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        logger: Optional[Logger] = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(client, logger)
        self.ttl = ttl
        self.clock = clock

    def create_session(self, user_id: Any, username: str) -> str:
        """Start a session and return the token to hand to the client."""
        token = secrets.token_urlsafe(32)
        expires_at = self.clock() + self.ttl
        with self._guard("create session"):
            self.client.table("sessions").insert({
                "token_hash": hash_token(token),
                "user_id": user_id,
                "username": username,
                "expires_at": expires_at.isoformat(),
            }).execute()
        return token

    def get_session(self, token: str) -> Optional[Session]:
        """The live session for this token, or None if unknown or expired."""
        if not token:
            return None
        token_hash = hash_token(token)
        with self._guard("get session"):
            result = self.client.table("sessions").select(
                "user_id, username, expires_at"
            ).eq("token_hash", token_hash).limit(1).execute()
            row = get_first(result.data)
            if not row:
                return None

            expires_at = _parse_timestamp(row.get("expires_at"))
            if expires_at is None or expires_at <= self.clock():
                self.client.table("sessions").delete().eq("token_hash", token_hash).execute()
                return None

            return Session(user_id=row.get("user_id"), username=str(row.get("username", "")), expires_at=expires_at)

    def delete_session(self, token: str) -> None:
        if not token:
            return
        with self._guard("delete session"):
            self.client.table("sessions").delete().eq("token_hash", hash_token(token)).execute()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            # Postgres emits a trailing Z on some drivers
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
