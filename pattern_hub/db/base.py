"""Shared plumbing for the Supabase-backed stores."""

from contextlib import contextmanager
from typing import Iterator, Optional

from pattern_hub.db.client import SupabaseClient, StorageFailure, get_supabase_client
from pattern_hub.utils.logger import Logger


class SupabaseDB:
    """Lazy client access and uniform error wrapping."""

    logger_name = "pattern-db"

    def __init__(self, client: Optional[SupabaseClient] = None, logger: Optional[Logger] = None):
        self._client = client
        self.logger = logger or Logger(self.logger_name)

    @property
    def client(self) -> SupabaseClient:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    @property
    def is_available(self) -> bool:
        return self.client.is_configured

    def _require_db(self) -> None:
        """Raise if database not configured."""
        if not self.is_available:
            raise StorageFailure("Database not configured. Set SUPABASE_URL and SUPABASE_SECRET_KEY.")

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Log and wrap anything the Supabase client raises."""
        self._require_db()
        try:
            yield
        except StorageFailure:
            raise
        except Exception as e:
            self.logger.error(f"Failed to {action}: {e}")
            raise StorageFailure(f"Failed to {action}") from e
