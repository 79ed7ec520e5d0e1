"""
Supabase client wrapper for Pattern Hub.
"""

import os
from typing import Optional
from functools import lru_cache

from dotenv import load_dotenv

from pattern_hub.config.registry import get_supabase_key, get_supabase_url

# Load .env file
load_dotenv()


class StorageFailure(RuntimeError):
    """A storage operation failed. The message is for logs, never for API callers."""


class SupabaseClient:
    """Wrapper around Supabase client with lazy initialization."""

    _instance: Optional["SupabaseClient"] = None

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self._url = url or os.getenv("SUPABASE_URL")
        self._key = key or os.getenv("SUPABASE_SECRET_KEY")
        self._client = None

    @property
    def client(self):
        """Lazily initialize Supabase client."""
        if self._client is None:
            url = self._url or get_supabase_url()
            key = self._key or get_supabase_key()
            from supabase import create_client
            self._client = create_client(url, key)
        return self._client

    @property
    def is_configured(self) -> bool:
        """Check if Supabase is configured."""
        return bool(self._url and self._key)

    def table(self, name: str):
        """Get a table reference."""
        return self.client.table(name)

    @classmethod
    def get_instance(cls) -> "SupabaseClient":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance


@lru_cache(maxsize=1)
def get_supabase_client() -> SupabaseClient:
    """Get the Supabase client singleton."""
    return SupabaseClient.get_instance()
