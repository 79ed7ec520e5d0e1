"""
Database layer for Pattern Hub.
Provides Supabase integration for items, tags, votes and sessions.
"""

from pattern_hub.db.client import get_supabase_client, SupabaseClient, StorageFailure
from pattern_hub.db.items import ItemDB, PatternRecord
from pattern_hub.db.votes import VoteDB
from pattern_hub.db.sessions import Session, SessionStore
from pattern_hub.db.helpers import Row, get_rows, get_first, get_nested_first

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "StorageFailure",
    "ItemDB",
    "PatternRecord",
    "VoteDB",
    "Session",
    "SessionStore",
    "Row",
    "get_rows",
    "get_first",
    "get_nested_first",
]
