"""
Moderation pipeline.

schema -> duplicate check -> security -> structure -> tags -> persist.
Every rejection is returned as a Rejected value; only storage errors raise.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

from pattern_hub.moderation.classifier import PREVIEW_LENGTH, SecurityClassifier
from pattern_hub.moderation.results import (
    Accepted,
    RejectionStage,
    Rejected,
    SchemaError,
    Submission,
    ValidationResult,
)
from pattern_hub.moderation.schemas import MAX_TAGS, parse_submission
from pattern_hub.moderation.structure import validate_content_structure

DUPLICATE_MESSAGE = "Duplicate content already exists"
STRUCTURE_CATEGORY = "structure"


def content_hash(content: str) -> str:
    """SHA-256 hex digest of the content, the dedup key together with type."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class NewItem:
    """Row handed to the store once a submission clears moderation."""
    type: str
    title: str
    description: str
    content: str
    file_hash: str
    submitter_id: Optional[Any] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class PatternStore(Protocol):
    """What the pipeline needs from storage."""

    def find_by_hash(self, file_hash: str, content_type: str) -> Optional[Any]:
        """Id of an existing item with this hash and type, or None."""
        ...

    def get_tag_id(self, name: str) -> Optional[Any]:
        """Id of a curated tag, or None if the name is not curated."""
        ...

    def insert_item(self, item: NewItem) -> Any:
        """Persist the item and return its generated id."""
        ...

    def add_item_tag(self, item_id: Any, tag_id: Any) -> None:
        ...


class ModerationPipeline:
    """Runs a raw submission through every moderation stage."""

    def __init__(self, store: PatternStore, classifier: Optional[SecurityClassifier] = None,
                 logger: Optional[logging.Logger] = None):
        self.store = store
        self.classifier = classifier or SecurityClassifier()
        self.logger = logger or logging.getLogger(__name__)

    def submit(self, raw: Any, submitter_id: Optional[Any] = None) -> Union[Accepted, Rejected]:
        submission = parse_submission(raw)
        if isinstance(submission, SchemaError):
            return Rejected(RejectionStage.SCHEMA, submission.message, field=submission.field)

        ctype = submission.type.value
        self.logger.info(
            "Pattern submission attempt",
            extra={"type": ctype, "submitter_id": submitter_id, "tag_count": len(submission.tags)},
        )

        file_hash = content_hash(submission.content)
        existing_id = self.store.find_by_hash(file_hash, ctype)
        if existing_id is not None:
            self.logger.info("Duplicate content rejected", extra={"existing_id": existing_id, "type": ctype})
            return Rejected(RejectionStage.DUPLICATE, DUPLICATE_MESSAGE, existing_id=existing_id)

        verdict = self.classifier.classify(submission.content, ctype, submission.title, submission.description)
        if verdict.is_blocked:
            self.logger.warning(
                "Submission blocked",
                extra={
                    "category": verdict.category,
                    "submitter_id": submitter_id,
                    "preview": submission.content[:PREVIEW_LENGTH],
                },
            )
            return Rejected(RejectionStage.SECURITY, verdict.reason, category=verdict.category)

        structure = validate_content_structure(submission.content, ctype)
        if not structure.valid:
            self.logger.info("Structural validation failed", extra={"type": ctype, "error": structure.error})
            return Rejected(RejectionStage.STRUCTURE, structure.error, category=STRUCTURE_CATEGORY)

        warnings = combine_warnings(verdict.reason if verdict.is_warning else None, structure)
        item = NewItem(
            type=ctype,
            title=submission.title,
            description=submission.description,
            content=submission.content,
            file_hash=file_hash,
            submitter_id=submitter_id,
            warnings=warnings,
            metadata=submission.metadata,
        )
        item_id = self.store.insert_item(item)
        tags = self._attach_tags(item_id, submission)

        warning_category = None
        if warnings:
            warning_category = verdict.category if verdict.is_warning else STRUCTURE_CATEGORY
            self.logger.info(
                "Pattern created with warnings",
                extra={"item_id": item_id, "warnings": warnings, "warning_category": warning_category},
            )
        else:
            self.logger.info("Pattern created", extra={"item_id": item_id, "type": ctype})

        return Accepted(id=item_id, warnings=warnings or None, warning_category=warning_category, tags=tags)

    def _attach_tags(self, item_id: Any, submission: Submission) -> List[str]:
        """Link curated tags to the item. Unknown names are dropped."""
        attached = []
        for name in submission.tags[:MAX_TAGS]:
            tag_id = self.store.get_tag_id(name)
            if tag_id is None:
                continue
            self.store.add_item_tag(item_id, tag_id)
            attached.append(name)

        if submission.tags and not attached:
            self.logger.warning("No valid tags provided", extra={"submitted_tags": submission.tags, "item_id": item_id})
        return attached


def combine_warnings(security_reason: Optional[str], structure: ValidationResult) -> List[str]:
    """Origin-tagged warning list: one Security entry, one Structure entry."""
    combined = []
    if security_reason:
        combined.append(f"Security: {security_reason}")
    if structure.warnings:
        combined.append(f"Structure: {', '.join(structure.warnings)}")
    return combined
