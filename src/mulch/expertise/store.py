"""JSONL-backed persistence for per-domain expertise records.

Each domain owns one append-only file under ``.mulch/expertise/``. All
writes go through :class:`ExpertiseLog`, which offers two mutation paths:
``append`` (never truncates) and ``write_all`` (whole-file snapshot
rewrite via a temp file and ``os.replace``).
"""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from mulch.config.path_resolver import PathResolver
from mulch.expertise.codec import decode_record, encode_record
from mulch.expertise.errors import RecordDecodeError
from mulch.expertise.models import ExpertiseRecord

logger = logging.getLogger(__name__)


class ExpertiseLog:
    """Append-only record log backed by a single JSONL file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def iter_lines(self) -> Iterator[tuple[int, str]]:
        """Yield ``(line_number, text)`` for every non-blank line.

        A missing file yields nothing.
        """
        try:
            f = self._path.open("r", encoding="utf-8")
        except FileNotFoundError:
            return
        with f:
            for number, line in enumerate(f, start=1):
                text = line.strip()
                if text:
                    yield number, text

    def read_all(self) -> list[ExpertiseRecord]:
        """Load every record; any undecodable line is a hard error."""
        records: list[ExpertiseRecord] = []
        for number, text in self.iter_lines():
            try:
                records.append(decode_record(text))
            except RecordDecodeError as exc:
                raise RecordDecodeError(exc.reason, path=self._path, line_number=number) from exc
        return records

    def read_tolerant(self) -> list[ExpertiseRecord]:
        """Load every record, skipping lines that do not decode."""
        records: list[ExpertiseRecord] = []
        for number, text in self.iter_lines():
            try:
                records.append(decode_record(text))
            except RecordDecodeError as exc:
                logger.debug("Skipping %s:%d: %s", self._path, number, exc.reason)
        return records

    def append(self, record: ExpertiseRecord) -> None:
        line = encode_record(record) + "\n"
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

    def create_empty(self) -> None:
        """Ensure the file exists; an existing file is left untouched."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)

    def write_all(self, records: Sequence[ExpertiseRecord]) -> None:
        """Replace the file contents with ``records``, one per line."""
        content = "".join(encode_record(r) + "\n" for r in records)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.info("Rewrote %s with %d records", self._path, len(records))

    def modified_at(self) -> datetime | None:
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc)


def read_expertise_file(path: Path) -> list[ExpertiseRecord]:
    return ExpertiseLog(path).read_all()


def append_record(path: Path, record: ExpertiseRecord) -> None:
    ExpertiseLog(path).append(record)


def create_expertise_file(path: Path) -> None:
    ExpertiseLog(path).create_empty()


def write_expertise_file(path: Path, records: Sequence[ExpertiseRecord]) -> None:
    ExpertiseLog(path).write_all(records)


class ExpertiseStore:
    """Per-project view of the domain files under ``<root>/.mulch/expertise``."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def expertise_dir(self) -> Path:
        return PathResolver.get_expertise_dir(self._root)

    def expertise_path(self, domain: str) -> Path:
        """Path of a domain's file. Raises InvalidDomainError for bad names."""
        return PathResolver.get_expertise_path(domain, self._root)

    def log(self, domain: str) -> ExpertiseLog:
        return ExpertiseLog(self.expertise_path(domain))

    def load(self, domain: str) -> list[ExpertiseRecord]:
        return self.log(domain).read_all()

    def load_all(self, domains: Iterable[str]) -> dict[str, list[ExpertiseRecord]]:
        """Load several domains, preserving the given domain order."""
        return {domain: self.load(domain) for domain in domains}

    def append(self, domain: str, record: ExpertiseRecord) -> None:
        log = self.log(domain)
        log.path.parent.mkdir(parents=True, exist_ok=True)
        log.append(record)

    def create_domain(self, domain: str) -> Path:
        log = self.log(domain)
        log.create_empty()
        return log.path

    def rewrite(self, domain: str, records: Sequence[ExpertiseRecord]) -> None:
        self.log(domain).write_all(records)
