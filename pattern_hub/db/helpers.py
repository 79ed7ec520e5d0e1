"""Database helper utilities for Supabase responses."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, cast

# Type alias for Supabase row data
Row = Dict[str, Any]


def get_rows(data: Any) -> List[Row]:
    """Safely extract rows from Supabase response data."""
    if isinstance(data, list):
        return cast(List[Row], data)
    if isinstance(data, dict):
        return [data]
    return []


def get_first(data: Any) -> Optional[Row]:
    """Safely get first row from Supabase response data."""
    rows = get_rows(data)
    return rows[0] if rows else None


def get_nested_first(row: Row, key: str) -> Optional[Row]:
    """Get first item from a nested array field (e.g., joined relations)."""
    nested = row.get(key, [])
    if isinstance(nested, list) and nested:
        return nested[0] if isinstance(nested[0], dict) else None
    return nested if isinstance(nested, dict) else None


def get_nested_names(row: Row, key: str, inner: str = "tags") -> List[str]:
    """Collect tag names from an item_tags(tags(name)) embed."""
    names = []
    for link in row.get(key) or []:
        if not isinstance(link, dict):
            continue
        tag = link.get(inner)
        if isinstance(tag, list):
            tag = tag[0] if tag else None
        if isinstance(tag, dict) and tag.get("name"):
            names.append(str(tag["name"]))
    return names


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_ago(**delta: float) -> str:
    """ISO timestamp `delta` before now, for created_at filters."""
    return (utc_now() - timedelta(**delta)).isoformat()
