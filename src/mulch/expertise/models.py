"""Expertise record models.

Records form a closed set of variants discriminated by ``type``. Every
variant shares the same envelope (classification, recorded_at, evidence,
tags, optional id); required per-type fields are declared on the variant.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Sequence, Union

from mulch.expertise.errors import RecordNotFoundError


class ExpertiseType(str, Enum):
    """Types of expertise records."""

    CONVENTION = "convention"
    PATTERN = "pattern"
    FAILURE = "failure"
    DECISION = "decision"
    REFERENCE = "reference"
    GUIDE = "guide"


class Classification(str, Enum):
    """Expiry tier of a record."""

    FOUNDATIONAL = "foundational"
    TACTICAL = "tactical"
    OBSERVATIONAL = "observational"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Current time formatted the way records store it (millisecond precision, Z suffix)."""
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_time_ago(when: datetime, now: datetime | None = None) -> str:
    """Short relative age such as ``5m ago`` or ``3d ago``."""
    seconds = ((now or utcnow()) - when).total_seconds()
    minutes = int(seconds // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``; naive values are treated as UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Evidence:
    """Free-form provenance attached to a record."""

    commit: str | None = None
    date: str | None = None
    issue: str | None = None
    file: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {k: v for k, v in (
            ("commit", self.commit),
            ("date", self.date),
            ("issue", self.issue),
            ("file", self.file),
        ) if v is not None}

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass(kw_only=True)
class BaseRecord:
    """Envelope shared by every record variant."""

    type: ClassVar[ExpertiseType]
    required_fields: ClassVar[tuple[str, ...]] = ()
    optional_fields: ClassVar[tuple[str, ...]] = ()

    classification: Classification
    recorded_at: str
    evidence: Evidence | None = None
    tags: list[str] | None = None
    id: str | None = None
    # Unrecognized top-level keys, carried through rewrites untouched.
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def recorded_at_datetime(self) -> datetime:
        return parse_timestamp(self.recorded_at)


@dataclass(kw_only=True)
class ConventionRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.CONVENTION
    required_fields: ClassVar[tuple[str, ...]] = ("content",)

    content: str


@dataclass(kw_only=True)
class PatternRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.PATTERN
    required_fields: ClassVar[tuple[str, ...]] = ("name", "description")
    optional_fields: ClassVar[tuple[str, ...]] = ("files",)

    name: str
    description: str
    files: list[str] | None = None


@dataclass(kw_only=True)
class FailureRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.FAILURE
    required_fields: ClassVar[tuple[str, ...]] = ("description", "resolution")

    description: str
    resolution: str


@dataclass(kw_only=True)
class DecisionRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.DECISION
    required_fields: ClassVar[tuple[str, ...]] = ("title", "rationale")
    optional_fields: ClassVar[tuple[str, ...]] = ("date",)

    title: str
    rationale: str
    date: str | None = None


@dataclass(kw_only=True)
class ReferenceRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.REFERENCE
    required_fields: ClassVar[tuple[str, ...]] = ("name", "description")
    optional_fields: ClassVar[tuple[str, ...]] = ("files",)

    name: str
    description: str
    files: list[str] | None = None


@dataclass(kw_only=True)
class GuideRecord(BaseRecord):
    type: ClassVar[ExpertiseType] = ExpertiseType.GUIDE
    required_fields: ClassVar[tuple[str, ...]] = ("name", "description")

    name: str
    description: str


ExpertiseRecord = Union[
    ConventionRecord,
    PatternRecord,
    FailureRecord,
    DecisionRecord,
    ReferenceRecord,
    GuideRecord,
]

RECORD_CLASSES: dict[ExpertiseType, type[BaseRecord]] = {
    ExpertiseType.CONVENTION: ConventionRecord,
    ExpertiseType.PATTERN: PatternRecord,
    ExpertiseType.FAILURE: FailureRecord,
    ExpertiseType.DECISION: DecisionRecord,
    ExpertiseType.REFERENCE: ReferenceRecord,
    ExpertiseType.GUIDE: GuideRecord,
}

# Field that identifies a record for duplicate detection and id generation.
_KEY_FIELDS: dict[ExpertiseType, str] = {
    ExpertiseType.CONVENTION: "content",
    ExpertiseType.PATTERN: "name",
    ExpertiseType.FAILURE: "description",
    ExpertiseType.DECISION: "title",
    ExpertiseType.REFERENCE: "name",
    ExpertiseType.GUIDE: "name",
}


def record_key(record: BaseRecord) -> str:
    return getattr(record, _KEY_FIELDS[record.type])


def generate_record_id(record: BaseRecord) -> str:
    """Derive a short content-addressed id, e.g. ``mx-1a2b3c``."""
    key = f"{record.type.value}:{record_key(record)}"
    return "mx-" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:6]


def find_duplicate(
    existing: Sequence[BaseRecord],
    new_record: BaseRecord,
) -> tuple[int, BaseRecord] | None:
    """Return ``(index, record)`` of the first record with the same type and key."""
    for index, record in enumerate(existing):
        if record.type is new_record.type and record_key(record) == record_key(new_record):
            return index, record
    return None


def record_summary(record: BaseRecord) -> str:
    """One-line human label for a record."""
    if isinstance(record, ConventionRecord):
        return record.content
    if isinstance(record, (PatternRecord, ReferenceRecord, GuideRecord)):
        return f"{record.name}: {record.description}"
    if isinstance(record, FailureRecord):
        return record.description
    if isinstance(record, DecisionRecord):
        return record.title
    return ""


def find_record_index(records: Sequence[BaseRecord], identifier: str, domain: str) -> int:
    """Resolve a record id (``mx-...``) or a 1-based position to a list index.

    Raises:
        RecordNotFoundError: If nothing in ``records`` matches.
    """
    if identifier.startswith("mx-"):
        for index, record in enumerate(records):
            if record.id == identifier:
                return index
        raise RecordNotFoundError(f'Record with ID "{identifier}" not found in domain "{domain}".')

    try:
        position = int(identifier)
    except ValueError:
        position = 0
    if position < 1:
        raise RecordNotFoundError(
            "Identifier must be a record ID (mx-XXXXXX) or a positive integer (1-based index)."
        )
    if position > len(records):
        raise RecordNotFoundError(
            f'Index {position} out of range. Domain "{domain}" has {len(records)} record(s).'
        )
    return position - 1
