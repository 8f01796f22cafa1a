"""Staleness policy and pruning for the expertise record store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from mulch.config.settings import ShelfLife
from mulch.expertise.errors import MulchError
from mulch.expertise.models import BaseRecord, Classification, ExpertiseRecord, utcnow
from mulch.expertise.store import ExpertiseStore

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def record_age_days(record: BaseRecord, now: datetime) -> int:
    """Whole days elapsed since ``recorded_at``; partial days round down."""
    return (_as_utc(now) - record.recorded_at_datetime) // _ONE_DAY


def is_stale(record: BaseRecord, now: datetime, shelf_life: ShelfLife) -> bool:
    """True when the record has outlived its classification's shelf life.

    Foundational records never expire. Age must strictly exceed the shelf
    life, so a tactical record exactly ``shelf_life.tactical`` days old is
    still fresh.
    """
    classification = record.classification
    if classification is Classification.FOUNDATIONAL:
        return False

    age = record_age_days(record, now)

    if classification is Classification.TACTICAL:
        return age > shelf_life.tactical
    if classification is Classification.OBSERVATIONAL:
        return age > shelf_life.observational
    # Decoded records never get here: the codec rejects unknown classifications.
    return False


def partition_records(
    records: Sequence[ExpertiseRecord],
    now: datetime,
    shelf_life: ShelfLife,
) -> tuple[list[ExpertiseRecord], list[ExpertiseRecord]]:
    """Split records into ``(kept, expired)``, preserving order in both."""
    kept: list[ExpertiseRecord] = []
    expired: list[ExpertiseRecord] = []
    for record in records:
        (expired if is_stale(record, now, shelf_life) else kept).append(record)
    return kept, expired


@dataclass
class DomainPruneResult:
    domain: str
    before: int
    pruned: int
    after: int

    def to_dict(self) -> dict[str, object]:
        return {
            "domain": self.domain,
            "before": self.before,
            "pruned": self.pruned,
            "after": self.after,
        }


@dataclass
class PruneResult:
    results: list[DomainPruneResult] = field(default_factory=list)
    total_pruned: int = 0
    dry_run: bool = False


class PruneAbortedError(MulchError):
    """Raised when pruning stops at a domain; ``partial`` lists domains already pruned."""

    def __init__(self, domain: str, partial: PruneResult) -> None:
        self.domain = domain
        self.partial = partial
        done = ", ".join(r.domain for r in partial.results) or "none"
        super().__init__(f"pruning aborted at domain '{domain}' (already pruned: {done})")


class PruneManager:
    """Evaluate and prune expired expertise records across domains."""

    def __init__(self, store: ExpertiseStore, shelf_life: ShelfLife) -> None:
        self._store = store
        self._shelf_life = shelf_life

    def prune(
        self,
        domains: Iterable[str],
        now: datetime | None = None,
        dry_run: bool = False,
    ) -> PruneResult:
        """Drop expired records from each domain file, in domain order.

        Not transactional: an error on one domain raises PruneAbortedError
        immediately. Earlier domains stay rewritten (listed in
        ``exc.partial``) and later ones are not touched.
        """
        current = now or utcnow()
        result = PruneResult(dry_run=dry_run)

        for domain in domains:
            try:
                records = self._store.load(domain)
                if not records:
                    continue

                kept, expired = partition_records(records, current, self._shelf_life)
                if not expired:
                    continue

                if not dry_run:
                    self._store.rewrite(domain, kept)
            except (OSError, MulchError) as exc:
                raise PruneAbortedError(domain, result) from exc

            result.results.append(
                DomainPruneResult(
                    domain=domain,
                    before=len(records),
                    pruned=len(expired),
                    after=len(kept),
                )
            )
            result.total_pruned += len(expired)
            logger.info(
                "%s %d of %d records from %s",
                "Would prune" if dry_run else "Pruned",
                len(expired),
                len(records),
                domain,
            )

        return result
