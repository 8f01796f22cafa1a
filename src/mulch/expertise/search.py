"""Substring search over expertise records."""
from __future__ import annotations

from typing import Iterator, Sequence

from mulch.expertise.models import BaseRecord, ExpertiseRecord, ExpertiseType

# Envelope metadata (type, classification, recorded_at, id, evidence) is not searched.
SEARCHABLE_FIELDS: tuple[str, ...] = (
    "content",
    "name",
    "title",
    "description",
    "resolution",
    "rationale",
    "date",
)
SEARCHABLE_LIST_FIELDS: tuple[str, ...] = ("tags", "files")


def searchable_text(record: BaseRecord) -> Iterator[str]:
    """Yield every string a query is matched against."""
    for name in SEARCHABLE_FIELDS:
        value = getattr(record, name, None)
        if isinstance(value, str):
            yield value
    for name in SEARCHABLE_LIST_FIELDS:
        for item in getattr(record, name, None) or ():
            if isinstance(item, str):
                yield item


def record_matches(record: BaseRecord, query: str, case_sensitive: bool = False) -> bool:
    if not query:
        return True
    needle = query if case_sensitive else query.lower()
    for text in searchable_text(record):
        haystack = text if case_sensitive else text.lower()
        if needle in haystack:
            return True
    return False


def search_records(
    records: Sequence[ExpertiseRecord],
    query: str,
    case_sensitive: bool = False,
) -> list[ExpertiseRecord]:
    """Stable filter: records containing ``query``, in input order."""
    return [r for r in records if record_matches(r, query, case_sensitive)]


def filter_by_type(
    records: Sequence[ExpertiseRecord],
    record_type: ExpertiseType | str,
) -> list[ExpertiseRecord]:
    wanted = ExpertiseType(record_type)
    return [r for r in records if r.type is wanted]
