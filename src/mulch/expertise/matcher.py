"""Map changed file paths onto the domains whose records declare them."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from mulch.expertise.models import BaseRecord, ExpertiseRecord, PatternRecord, ReferenceRecord


def file_matches(changed: str, declared: str) -> bool:
    """Path-suffix tolerant comparison in either direction."""
    if not changed or not declared:
        return False
    return changed == declared or changed.endswith(declared) or declared.endswith(changed)


def file_matches_any(file: str, changed_files: Sequence[str]) -> bool:
    return any(file_matches(changed, file) for changed in changed_files)


def record_files(record: BaseRecord) -> list[str]:
    """Files declared by a pattern/reference record; empty for other types."""
    if isinstance(record, (PatternRecord, ReferenceRecord)) and record.files:
        return [f for f in record.files if f]
    return []


def declared_files(records: Sequence[BaseRecord]) -> list[str]:
    """Unique declared files across ``records``, in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        for path in record_files(record):
            seen.setdefault(path, None)
    return list(seen)


@dataclass
class DomainMatch:
    domain: str
    matched_files: list[str] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return len(self.matched_files)


@dataclass
class MatchResult:
    matches: list[DomainMatch] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)


def match_files_to_domains(
    changed_files: Sequence[str],
    domain_records: Mapping[str, Sequence[ExpertiseRecord]],
) -> MatchResult:
    """Suggest domains for a set of changed files.

    Matches are ordered by match count descending, ties by domain name.
    ``matched_files`` and ``unmatched`` keep the order of ``changed_files``.
    """
    matched: set[str] = set()
    matches: list[DomainMatch] = []

    for domain, records in domain_records.items():
        domain_files = declared_files(records)
        if not domain_files:
            continue
        hits = [
            changed for changed in changed_files
            if any(file_matches(changed, declared) for declared in domain_files)
        ]
        if hits:
            matches.append(DomainMatch(domain=domain, matched_files=hits))
            matched.update(hits)

    matches.sort(key=lambda m: (-m.match_count, m.domain))
    unmatched = [f for f in changed_files if f not in matched]
    return MatchResult(matches=matches, unmatched=unmatched)


def filter_by_context(
    records: Sequence[ExpertiseRecord],
    changed_files: Sequence[str],
) -> list[ExpertiseRecord]:
    """Keep records relevant to ``changed_files``.

    Records without declared files apply to the whole domain and are always kept.
    """
    kept: list[ExpertiseRecord] = []
    for record in records:
        files = record_files(record)
        if not files or any(file_matches_any(f, changed_files) for f in files):
            kept.append(record)
    return kept
