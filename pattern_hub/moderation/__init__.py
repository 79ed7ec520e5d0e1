"""Content moderation: envelope schema, security classification and structural validation."""

from pattern_hub.moderation.classifier import SecurityClassifier, classify_content
from pattern_hub.moderation.pipeline import ModerationPipeline, NewItem, PatternStore, content_hash
from pattern_hub.moderation.results import (
    Accepted,
    ContentType,
    RejectionStage,
    Rejected,
    SchemaError,
    SecurityVerdict,
    Submission,
    ValidationResult,
    VerdictStatus,
)
from pattern_hub.moderation.rules import is_protective
from pattern_hub.moderation.schemas import parse_submission
from pattern_hub.moderation.structure import validate_content_structure

__all__ = [
    "Accepted",
    "ContentType",
    "ModerationPipeline",
    "NewItem",
    "PatternStore",
    "RejectionStage",
    "Rejected",
    "SchemaError",
    "SecurityClassifier",
    "SecurityVerdict",
    "Submission",
    "ValidationResult",
    "VerdictStatus",
    "classify_content",
    "content_hash",
    "is_protective",
    "parse_submission",
    "validate_content_structure",
]
