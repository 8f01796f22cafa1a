"""Priming engine: render domain records as context for a coding agent."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Sequence

from mulch.expertise.codec import record_to_dict
from mulch.expertise.matcher import filter_by_context
from mulch.expertise.models import (
    ConventionRecord,
    DecisionRecord,
    ExpertiseRecord,
    ExpertiseType,
    FailureRecord,
    GuideRecord,
    PatternRecord,
    ReferenceRecord,
    format_time_ago,
)
from mulch.expertise.store import ExpertiseStore

PRIME_TITLE = "Project Expertise (via Mulch)"
EMPTY_HINT = (
    "No expertise recorded yet. Use `mulch add <domain>` to create a domain, "
    "then `mulch record` to add entries."
)

_SENTENCE_END = re.compile(r"[.!?]\s")


@dataclass
class PrimeSection:
    """Records of one domain selected for priming."""

    domain: str
    records: list[ExpertiseRecord]
    last_updated: datetime | None = None

    @property
    def entry_count(self) -> int:
        return len(self.records)


def build_prime(
    store: ExpertiseStore,
    domains: Iterable[str],
    changed_files: Sequence[str] | None = None,
) -> list[PrimeSection]:
    """Load each domain, optionally narrowed to records relevant to ``changed_files``.

    With ``changed_files``, domains left with no records are dropped.
    """
    sections: list[PrimeSection] = []
    for domain in domains:
        records = store.load(domain)
        if changed_files is not None:
            records = filter_by_context(records, changed_files)
            if not records:
                continue
        sections.append(
            PrimeSection(domain=domain, records=records, last_updated=store.log(domain).modified_at())
        )
    return sections


def truncate(text: str, max_len: int = 100) -> str:
    """Shorten ``text`` to its first sentence, or to ``max_len`` characters plus ``...``."""
    if len(text) <= max_len:
        return text
    match = _SENTENCE_END.search(text)
    if match and 0 < match.start() < max_len:
        return text[: match.start() + 1]
    return text[:max_len] + "..."


def _files_suffix(files: list[str] | None) -> str:
    return f" ({', '.join(files)})" if files else ""


class PrimeFormatter:
    """Format prime sections as compact markdown, plain text or JSON."""

    _TYPE_ORDER = (
        ExpertiseType.CONVENTION,
        ExpertiseType.PATTERN,
        ExpertiseType.FAILURE,
        ExpertiseType.DECISION,
        ExpertiseType.REFERENCE,
        ExpertiseType.GUIDE,
    )

    _TYPE_LABEL: dict[ExpertiseType, str] = {
        ExpertiseType.CONVENTION: "Conventions",
        ExpertiseType.PATTERN: "Patterns",
        ExpertiseType.FAILURE: "Known Failures",
        ExpertiseType.DECISION: "Decisions",
        ExpertiseType.REFERENCE: "References",
        ExpertiseType.GUIDE: "Guides",
    }

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now

    def _updated(self, section: PrimeSection) -> str | None:
        if section.last_updated is None:
            return None
        return format_time_ago(section.last_updated, self._now)

    def _meta(self, record: ExpertiseRecord) -> str:
        parts = [f"({record.classification.value})"]
        if record.evidence is not None and not record.evidence.is_empty():
            evidence = ", ".join(f"{k}: {v}" for k, v in record.evidence.to_dict().items())
            parts.append(f"[{evidence}]")
        if record.tags:
            parts.append(f"[tags: {', '.join(record.tags)}]")
        return " " + " ".join(parts)

    def compact_line(self, record: ExpertiseRecord, full: bool = False) -> str:
        if isinstance(record, ConventionRecord):
            line = f"- [convention] {truncate(record.content)}"
        elif isinstance(record, PatternRecord):
            line = f"- [pattern] {record.name}: {truncate(record.description)}{_files_suffix(record.files)}"
        elif isinstance(record, FailureRecord):
            line = f"- [failure] {truncate(record.description)} -> {truncate(record.resolution)}"
        elif isinstance(record, DecisionRecord):
            line = f"- [decision] {record.title}: {truncate(record.rationale)}"
        elif isinstance(record, ReferenceRecord):
            detail = ", ".join(record.files) if record.files else truncate(record.description)
            line = f"- [reference] {record.name}: {detail}"
        elif isinstance(record, GuideRecord):
            line = f"- [guide] {record.name}: {truncate(record.description)}"
        else:
            raise TypeError(f"unsupported record: {type(record).__name__}")
        return line + (self._meta(record) if full else "")

    def format_markdown(self, sections: Sequence[PrimeSection], full: bool = False) -> str:
        lines = [f"# {PRIME_TITLE}", ""]
        if not sections:
            lines.append(EMPTY_HINT)
            return "\n".join(lines)

        blocks: list[str] = []
        for section in sections:
            updated = self._updated(section)
            header = f"## {section.domain} ({section.entry_count} entries"
            header += f", updated {updated})" if updated else ")"
            blocks.append("\n".join([header, *(self.compact_line(r, full) for r in section.records)]))
        lines.append("\n\n".join(blocks))
        return "\n".join(lines)

    def _plain_lines(self, record: ExpertiseRecord) -> list[str]:
        if isinstance(record, ConventionRecord):
            return [f"  - {record.content}"]
        if isinstance(record, FailureRecord):
            return [f"  - {record.description}", f"    Fix: {record.resolution}"]
        if isinstance(record, DecisionRecord):
            return [f"  - {record.title}: {record.rationale}"]
        if isinstance(record, (PatternRecord, ReferenceRecord)):
            return [f"  - {record.name}: {record.description}{_files_suffix(record.files)}"]
        return [f"  - {record.name}: {record.description}"]

    def format_plain(self, sections: Sequence[PrimeSection]) -> str:
        lines = [PRIME_TITLE, "=" * len(PRIME_TITLE), ""]
        if not sections:
            lines.append(EMPTY_HINT)
            return "\n".join(lines)

        blocks: list[str] = []
        for section in sections:
            updated = self._updated(section)
            block = [f"[{section.domain}] {section.entry_count} entries" + (f" (updated {updated})" if updated else "")]
            for etype in self._TYPE_ORDER:
                records = [r for r in section.records if r.type is etype]
                if not records:
                    continue
                block.append("")
                block.append(f"{self._TYPE_LABEL[etype]}:")
                for record in records:
                    block.extend(self._plain_lines(record))
            blocks.append("\n".join(block))
        lines.append("\n\n".join(blocks))
        return "\n".join(lines)

    def format_json(self, sections: Sequence[PrimeSection]) -> dict[str, Any]:
        return {
            "type": "expertise",
            "domains": [
                {
                    "domain": section.domain,
                    "entry_count": section.entry_count,
                    "records": [record_to_dict(r) for r in section.records],
                }
                for section in sections
            ],
        }
