"""
Submission envelope validation.

Turns an untyped request body into a Submission or the first violated
constraint. Checks run in three passes so the reported error is stable:
required fields, then formats, then the per-type content limit.
"""

import re
from typing import Any, Dict, List, Optional, Union

from jsonschema import ValidationError, validate

from pattern_hub.moderation.results import ContentType, SchemaError, Submission, type_name

# Per-type content limits (characters)
CONTENT_LIMITS: Dict[str, int] = {
    ContentType.CLAUDE_MD.value: 10240,
    ContentType.AGENT.value: 5120,
    ContentType.PROMPT.value: 500,
    ContentType.HOOK.value: 5120,
    ContentType.COMMAND.value: 2048,
}

# Envelope ceiling, deliberately looser than any per-type limit
MAX_CONTENT_LENGTH = 20480
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_TAGS = 5
MAX_TAG_LENGTH = 50

TITLE_FORBIDDEN = re.compile(r"[<>&\"']")
TAG_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")

HOOK_EVENT_TYPES = [
    "PreToolUse",
    "PostToolUse",
    "UserPromptSubmit",
    "Stop",
    "SubagentStop",
    "SessionStart",
    "PreCompact",
    "Notification",
]

METADATA_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "eventType": {"type": "string", "enum": HOOK_EVENT_TYPES},
        "tools": {"type": "array", "items": {"type": "string"}},
        "model": {"type": "string"},
        "supportsArgs": {"type": "boolean"},
        "environment": {"type": "array", "items": {"type": "string"}},
    },
}


def parse_submission(data: Any) -> Union[Submission, SchemaError]:
    """
    Validate a raw submission body.

    Returns a Submission on success, otherwise the SchemaError for the first
    failing check.
    """
    if not isinstance(data, dict):
        return SchemaError("Invalid input format")

    # Pass 1: required fields
    content_type = data.get("type")
    if content_type not in ContentType.values():
        return SchemaError("Invalid content type", "type")

    title = data.get("title")
    error = _check_required(title, "title", "Title")
    if error:
        return error

    description = data.get("description")
    error = _check_required(description, "description", "Description")
    if error:
        return error

    content = data.get("content")
    if content is None:
        return SchemaError("Content is required", "content")
    if not isinstance(content, str):
        return SchemaError("Content must be a string", "content")
    if len(content) == 0:
        return SchemaError("Content is required", "content")

    title = title.strip()
    description = description.strip()

    # Pass 2: formats
    if len(title) > MAX_TITLE_LENGTH:
        return SchemaError(f"Title cannot exceed {MAX_TITLE_LENGTH} characters", "title")
    if TITLE_FORBIDDEN.search(title):
        return SchemaError("Title contains invalid characters", "title")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return SchemaError(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters", "description")
    if len(content) > MAX_CONTENT_LENGTH:
        return SchemaError("Content too large", "content")

    tags = _parse_tags(data.get("tags"))
    if isinstance(tags, SchemaError):
        return tags

    metadata = data.get("metadata")
    if metadata is not None:
        try:
            validate(instance=metadata, schema=METADATA_SCHEMA)
        except ValidationError as e:
            return SchemaError(f"Invalid metadata: {e.message}", "metadata")

    # Pass 3: per-type limit
    error = validate_content_length(content, content_type)
    if error:
        return error

    return Submission(
        type=ContentType(content_type),
        title=title,
        description=description,
        content=content,
        tags=tags,
        metadata=metadata,
    )


def validate_content_length(content: str, content_type: str) -> Optional[SchemaError]:
    """Check content against the per-type limit table."""
    content_type = type_name(content_type)
    limit = CONTENT_LIMITS.get(content_type)
    if limit is None:
        return SchemaError("Invalid content type", "type")
    if len(content) > limit:
        return SchemaError(f"Content exceeds {limit} characters for {content_type}", "content")
    return None


def is_valid_tag_name(name: str) -> bool:
    """Curated tag names are short slugs."""
    name = name.strip()
    return 0 < len(name) <= MAX_TAG_LENGTH and bool(TAG_NAME_PATTERN.match(name))


def _check_required(value: Any, field_name: str, label: str) -> Optional[SchemaError]:
    if value is None:
        return SchemaError(f"{label} is required", field_name)
    if not isinstance(value, str):
        return SchemaError(f"{label} must be a string", field_name)
    if not value.strip():
        return SchemaError(f"{label} is required", field_name)
    return None


def _parse_tags(raw: Any) -> Union[List[str], SchemaError]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        return SchemaError("Tags must be an array", "tags")

    tags = []
    # Anything past the fifth tag is ignored, not rejected
    for index, tag in enumerate(raw[:MAX_TAGS]):
        if not isinstance(tag, str):
            return SchemaError("Tags must be strings", f"tags.{index}")
        tag = tag.strip()
        if not tag:
            return SchemaError("Tag cannot be empty", f"tags.{index}")
        if len(tag) > MAX_TAG_LENGTH:
            return SchemaError(f"Tag cannot exceed {MAX_TAG_LENGTH} characters", f"tags.{index}")
        tags.append(tag)
    return tags
