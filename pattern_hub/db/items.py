"""
Pattern item database operations.
Items, curated tags and the item-tag links stored in Supabase.
"""

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from pattern_hub.db.base import SupabaseDB
from pattern_hub.db.client import StorageFailure
from pattern_hub.db.helpers import Row, get_first, get_nested_first, get_nested_names, get_rows, iso_ago
from pattern_hub.moderation.pipeline import NewItem

SORTS = ("hot", "top", "new")
TIMEFRAME_DAYS = {"day": 1, "week": 7, "month": 30}
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 30
SEARCH_LIMIT = 30
POPULAR_TAG_LIMIT = 20

# PostgREST filter syntax characters
FILTER_UNSAFE = re.compile(r"[,()*%\\]")


@dataclass(slots=True)
class PatternRecord:
    """A stored pattern with its tag names and submitter username."""
    id: Any
    type: str
    title: str
    description: str
    content: str
    submitter_id: Optional[Any] = None
    submitter_name: str = "anonymous"
    votes_up: int = 0
    votes_down: int = 0
    has_warnings: bool = False
    warning_flags: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @property
    def score(self) -> int:
        return self.votes_up - self.votes_down

    @classmethod
    def from_row(cls, row: Row) -> "PatternRecord":
        submitter = get_nested_first(row, "submitter")
        return cls(
            id=row.get("id"),
            type=str(row.get("type", "")),
            title=str(row.get("title", "")),
            description=str(row.get("description", "")),
            content=str(row.get("content", "")),
            submitter_id=row.get("submitter_id"),
            submitter_name=(submitter or {}).get("username") or "anonymous",
            votes_up=int(row.get("votes_up") or 0),
            votes_down=int(row.get("votes_down") or 0),
            has_warnings=bool(row.get("has_warnings", False)),
            warning_flags=_parse_flags(row.get("warning_flags")),
            tags=get_nested_names(row, "item_tags"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_flags(raw: Any) -> List[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return [raw]
    return [str(flag) for flag in raw] if isinstance(raw, list) else []


def clamp_page(limit: Any, offset: Any) -> "tuple[int, int]":
    """Coerce query-string paging into limit 1-100 and offset >= 0."""
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    try:
        offset = int(offset)
    except (TypeError, ValueError):
        offset = 0
    return max(1, min(limit, MAX_PAGE_SIZE)), max(0, offset)


class ItemDB(SupabaseDB):
    """Database operations for pattern items. Satisfies the moderation PatternStore."""

    logger_name = "item-db"

    ITEM_FIELDS = (
        "id, type, title, description, content, submitter_id, votes_up, votes_down, "
        "has_warnings, warning_flags, created_at, "
        "submitter:users(username), item_tags(tags(name))"
    )

    # ------------------------------------------------------------------
    # PatternStore
    # ------------------------------------------------------------------

    def find_by_hash(self, file_hash: str, content_type: str) -> Optional[Any]:
        with self._guard("look up content hash"):
            result = self.client.table("items").select("id").eq(
                "file_hash", file_hash
            ).eq("type", content_type).limit(1).execute()
            row = get_first(result.data)
            return row.get("id") if row else None

    def get_tag_id(self, name: str) -> Optional[Any]:
        with self._guard(f"look up tag {name}"):
            result = self.client.table("tags").select("id").eq("name", name).limit(1).execute()
            row = get_first(result.data)
            return row.get("id") if row else None

    def insert_item(self, item: NewItem) -> Any:
        with self._guard("insert item"):
            result = self.client.table("items").insert({
                "type": item.type,
                "title": item.title,
                "description": item.description,
                "content": item.content,
                "file_hash": item.file_hash,
                "submitter_id": item.submitter_id,
                "has_warnings": item.has_warnings,
                "warning_flags": item.warnings or None,
                "metadata": item.metadata,
                "vote_score": 0,
            }).execute()
            row = get_first(result.data)
            if not row or row.get("id") is None:
                raise StorageFailure("Insert returned no item id")
            return row["id"]

    def add_item_tag(self, item_id: Any, tag_id: Any) -> None:
        with self._guard(f"tag item {item_id}"):
            self.client.table("item_tags").insert({"item_id": item_id, "tag_id": tag_id}).execute()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, item_id: Any) -> Optional[PatternRecord]:
        with self._guard(f"get item {item_id}"):
            result = self.client.table("items").select(self.ITEM_FIELDS).eq("id", item_id).limit(1).execute()
            row = get_first(result.data)
            return PatternRecord.from_row(row) if row else None

    def list(
        self,
        content_type: Optional[str] = None,
        sort: str = "hot",
        limit: Any = DEFAULT_PAGE_SIZE,
        offset: Any = 0,
        username: Optional[str] = None,
        tag: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> List[PatternRecord]:
        """
        List items with optional filters.

        Args:
            content_type: Only items of this type
            sort: "hot" (net votes, then newest), "top" (upvotes) or "new"
            limit: Page size, clamped to 1-100
            offset: Rows to skip
            username: Only items submitted by this user
            tag: Only items carrying this tag
            timeframe: "day", "week" or "month"; applies to "top" only
        """
        limit, offset = clamp_page(limit, offset)
        if sort not in SORTS:
            sort = "hot"

        with self._guard("list items"):
            query = self.client.table("items").select(self.ITEM_FIELDS)

            if content_type:
                query = query.eq("type", content_type)

            if username:
                user_id = self._user_id(username)
                if user_id is None:
                    return []
                query = query.eq("submitter_id", user_id)

            if tag:
                item_ids = self._item_ids_for_tags([tag])
                if not item_ids:
                    return []
                query = query.in_("id", item_ids)

            if sort == "top" and timeframe in TIMEFRAME_DAYS:
                query = query.gte("created_at", iso_ago(days=TIMEFRAME_DAYS[timeframe]))

            if sort == "top":
                query = query.order("votes_up", desc=True)
            elif sort == "new":
                query = query.order("created_at", desc=True)
            else:
                query = query.order("vote_score", desc=True).order("created_at", desc=True)

            result = query.range(offset, offset + limit - 1).execute()
            return [PatternRecord.from_row(row) for row in get_rows(result.data)]

    def search(
        self,
        query: str,
        content_type: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> List[PatternRecord]:
        """Substring search over title and description, best-voted first."""
        term = FILTER_UNSAFE.sub(" ", query).strip()
        if not term:
            return []

        with self._guard("search items"):
            builder = self.client.table("items").select(self.ITEM_FIELDS).or_(
                f"title.ilike.*{term}*,description.ilike.*{term}*"
            )

            if content_type:
                builder = builder.eq("type", content_type)

            if tags:
                item_ids = self._item_ids_for_tags(tags)
                if not item_ids:
                    return []
                builder = builder.in_("id", item_ids)

            result = builder.order("votes_up", desc=True).limit(SEARCH_LIMIT).execute()
            return [PatternRecord.from_row(row) for row in get_rows(result.data)]

    def popular_tags(self) -> List[Dict[str, Any]]:
        """Tags in use, most used first."""
        with self._guard("list popular tags"):
            result = self.client.table("tags").select("name, item_tags(count)").execute()
            counted = []
            for row in get_rows(result.data):
                usage = get_nested_first(row, "item_tags") or {}
                count = int(usage.get("count") or 0)
                if count > 0:
                    counted.append({"name": row.get("name"), "count": count})
            counted.sort(key=lambda t: t["count"], reverse=True)
            return counted[:POPULAR_TAG_LIMIT]

    def _user_id(self, username: str) -> Optional[Any]:
        result = self.client.table("users").select("id").eq("username", username).limit(1).execute()
        row = get_first(result.data)
        return row.get("id") if row else None

    def _item_ids_for_tags(self, names: List[str]) -> List[Any]:
        tags = self.client.table("tags").select("id").in_("name", names).execute()
        tag_ids = [row.get("id") for row in get_rows(tags.data)]
        if not tag_ids:
            return []
        links = self.client.table("item_tags").select("item_id").in_("tag_id", tag_ids).execute()
        # Preserve order, drop duplicates
        return list(dict.fromkeys(row.get("item_id") for row in get_rows(links.data)))
