"""Expertise store: typed records kept as one JSONL file per domain."""
from __future__ import annotations

from mulch.expertise.errors import (
    InvalidDomainError,
    MulchError,
    RecordDecodeError,
    RecordValidationError,
)
from mulch.expertise.models import (
    Classification,
    ConventionRecord,
    DecisionRecord,
    Evidence,
    ExpertiseRecord,
    ExpertiseType,
    FailureRecord,
    GuideRecord,
    PatternRecord,
    ReferenceRecord,
)

__all__ = [
    "Classification",
    "ConventionRecord",
    "DecisionRecord",
    "Evidence",
    "ExpertiseRecord",
    "ExpertiseType",
    "FailureRecord",
    "GuideRecord",
    "InvalidDomainError",
    "MulchError",
    "PatternRecord",
    "RecordDecodeError",
    "RecordValidationError",
    "ReferenceRecord",
]
