"""Line-level validation of domain files (powers `mulch validate`)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from mulch.expertise.codec import decode_record
from mulch.expertise.errors import RecordDecodeError
from mulch.expertise.store import ExpertiseStore


@dataclass
class LineError:
    domain: str
    line: int
    message: str

    def to_dict(self) -> dict[str, object]:
        return {"domain": self.domain, "line": self.line, "message": self.message}


@dataclass
class ValidationReport:
    total_records: int = 0
    errors: list[LineError] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return len(self.errors)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_domain_files(store: ExpertiseStore, domains: Iterable[str]) -> ValidationReport:
    """Decode every non-blank line of each domain file and collect failures.

    Unlike ``ExpertiseLog.read_all`` this never raises on bad lines, so one
    corrupt record does not hide the others.
    """
    report = ValidationReport()
    for domain in domains:
        for number, text in store.log(domain).iter_lines():
            report.total_records += 1
            try:
                decode_record(text)
            except RecordDecodeError as exc:
                report.errors.append(LineError(domain=domain, line=number, message=exc.reason))
    return report
