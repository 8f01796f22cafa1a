"""Recover per-domain record changes from unified-diff text.

The parser is a small state machine whose only state is the domain of the
file header most recently seen. Payload lines that do not decode as
records (context artifacts, truncated lines) are skipped by design.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from mulch.expertise.codec import decode_record, record_to_dict
from mulch.expertise.errors import RecordValidationError
from mulch.expertise.models import ExpertiseRecord

logger = logging.getLogger(__name__)

_FILE_HEADER = "diff --git"
_METADATA_PREFIXES = ("+++", "---", "@@")
_DOMAIN_PATH_RE = re.compile(r"(?:^|/)expertise/([A-Za-z0-9][A-Za-z0-9_-]*)\.[A-Za-z0-9]+(?=\s|$)")


@dataclass
class DiffEntry:
    domain: str
    added: list[ExpertiseRecord] = field(default_factory=list)
    removed: list[ExpertiseRecord] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        return len(self.added) + len(self.removed)

    def to_dict(self) -> dict[str, object]:
        return {
            "domain": self.domain,
            "added": [record_to_dict(r) for r in self.added],
            "removed": [record_to_dict(r) for r in self.removed],
        }


def domain_from_header(line: str) -> str | None:
    """Domain named by a ``diff --git`` header, or None for other files."""
    for token in line[len(_FILE_HEADER):].split():
        match = _DOMAIN_PATH_RE.search(token)
        if match:
            return match.group(1)
    return None


class ExpertiseDiffParser:
    """Incrementally feed diff lines; call :meth:`result` when done."""

    def __init__(self) -> None:
        self._entries: dict[str, DiffEntry] = {}
        self._current: DiffEntry | None = None

    @property
    def current_domain(self) -> str | None:
        return self._current.domain if self._current is not None else None

    def feed(self, line: str) -> None:
        if line.startswith(_FILE_HEADER):
            domain = domain_from_header(line)
            if domain is None:
                self._current = None
            else:
                self._current = self._entries.setdefault(domain, DiffEntry(domain=domain))
            return

        if line.startswith(_METADATA_PREFIXES) or self._current is None:
            return

        if line.startswith("+"):
            target = self._current.added
        elif line.startswith("-"):
            target = self._current.removed
        else:
            return

        payload = line[1:]
        try:
            target.append(decode_record(payload))
        except RecordValidationError as exc:
            logger.debug("Ignoring non-record diff line in %s: %s", self._current.domain, exc)

    def result(self) -> list[DiffEntry]:
        """Entries with at least one change, sorted by domain name."""
        return sorted(
            (entry for entry in self._entries.values() if entry.change_count > 0),
            key=lambda entry: entry.domain,
        )


def parse_expertise_diff(diff_output: str) -> list[DiffEntry]:
    parser = ExpertiseDiffParser()
    for line in diff_output.splitlines():
        parser.feed(line)
    return parser.result()
