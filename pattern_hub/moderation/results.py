"""
Moderation result types.

Everything the moderation layer produces is a value: validation results,
security verdicts and the final accept/reject decision. Nothing here raises.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ContentType(str, Enum):
    """The five kinds of pattern the registry accepts."""
    CLAUDE_MD = "claude_md"
    AGENT = "agent"
    PROMPT = "prompt"
    HOOK = "hook"
    COMMAND = "command"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


INSTRUCTIONAL_TYPES = frozenset({ContentType.PROMPT.value, ContentType.CLAUDE_MD.value, ContentType.AGENT.value})


def type_name(content_type: Any) -> str:
    """Plain string form of a content type, whether given as ContentType or str."""
    if isinstance(content_type, ContentType):
        return content_type.value
    return str(content_type)


@dataclass(frozen=True)
class ValidationResult:
    """Structural validation outcome. `error` is set iff `valid` is False."""
    valid: bool
    error: Optional[str] = None
    warnings: Optional[List[str]] = None

    @classmethod
    def ok(cls, warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(valid=True, warnings=list(warnings) if warnings else None)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


class VerdictStatus(str, Enum):
    BLOCK = "BLOCK"
    WARN = "WARN"
    ALLOW = "ALLOW"


@dataclass(frozen=True)
class SecurityVerdict:
    """Security classifier outcome: BLOCK(reason, category), WARN(reason, category) or ALLOW."""
    status: VerdictStatus
    reason: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def block(cls, reason: str, category: str) -> "SecurityVerdict":
        return cls(VerdictStatus.BLOCK, reason, category)

    @classmethod
    def warn(cls, reason: str, category: str) -> "SecurityVerdict":
        return cls(VerdictStatus.WARN, reason, category)

    @classmethod
    def allow(cls) -> "SecurityVerdict":
        return cls(VerdictStatus.ALLOW)

    @property
    def is_blocked(self) -> bool:
        return self.status is VerdictStatus.BLOCK

    @property
    def is_warning(self) -> bool:
        return self.status is VerdictStatus.WARN


@dataclass(frozen=True)
class Submission:
    """A schema-validated pattern submission."""
    type: ContentType
    title: str
    description: str
    content: str
    tags: List[str] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SchemaError:
    """First violated envelope constraint."""
    message: str
    field: str = "unknown"


class RejectionStage(str, Enum):
    SCHEMA = "schema"
    DUPLICATE = "duplicate"
    SECURITY = "security"
    STRUCTURE = "structure"


@dataclass(frozen=True)
class Rejected:
    """Submission refused by one of the pipeline stages."""
    stage: RejectionStage
    reason: str
    category: Optional[str] = None
    field: Optional[str] = None
    existing_id: Optional[Any] = None

    @property
    def blocked(self) -> bool:
        return self.stage is RejectionStage.SECURITY


@dataclass(frozen=True)
class Accepted:
    """Submission stored. `warnings` is None when nothing was flagged."""
    id: Any
    warnings: Optional[List[str]] = None
    warning_category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
