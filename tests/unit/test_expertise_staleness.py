"""Tests for shelf-life staleness and pruning."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from mulch.config.settings import ShelfLife
from mulch.expertise.models import Classification, ConventionRecord
from mulch.expertise.staleness import (
    PruneAbortedError,
    PruneManager,
    is_stale,
    partition_records,
    record_age_days,
)
from mulch.expertise.store import ExpertiseStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SHELF = ShelfLife(tactical=14, observational=30)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _iso(when: datetime) -> str:
    return when.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record(
    content: str = "content",
    *,
    classification: Classification = Classification.TACTICAL,
    age: timedelta = timedelta(0),
) -> ConventionRecord:
    return ConventionRecord(content=content, classification=classification, recorded_at=_iso(NOW - age))


@pytest.fixture
def store(tmp_path: Path) -> ExpertiseStore:
    return ExpertiseStore(tmp_path)


class TestRecordAge:
    def test_partial_days_round_down(self):
        assert record_age_days(_record(age=timedelta(days=3, hours=23)), NOW) == 3

    def test_naive_now_treated_as_utc(self):
        naive = NOW.replace(tzinfo=None)
        assert record_age_days(_record(age=timedelta(days=2)), naive) == 2


class TestIsStale:
    def test_foundational_never_stale(self):
        record = _record(classification=Classification.FOUNDATIONAL, age=timedelta(days=3650))
        assert not is_stale(record, NOW, SHELF)

    def test_unrecognized_classification_never_stale(self):
        record = _record(age=timedelta(days=3650))
        record.classification = "ephemeral"
        assert not is_stale(record, NOW, SHELF)

    def test_tactical_boundary(self):
        assert not is_stale(_record(age=timedelta(days=14)), NOW, SHELF)
        assert not is_stale(_record(age=timedelta(days=14, hours=23)), NOW, SHELF)
        assert is_stale(_record(age=timedelta(days=15)), NOW, SHELF)

    def test_observational_boundary(self):
        obs = Classification.OBSERVATIONAL
        assert not is_stale(_record(classification=obs, age=timedelta(days=30)), NOW, SHELF)
        assert is_stale(_record(classification=obs, age=timedelta(days=31)), NOW, SHELF)

    def test_future_record_is_fresh(self):
        assert not is_stale(_record(age=timedelta(days=-5)), NOW, SHELF)

    def test_custom_shelf_life(self):
        assert is_stale(_record(age=timedelta(days=2)), NOW, ShelfLife(tactical=1, observational=1))


class TestPartition:
    def test_order_preserved(self):
        records = [
            _record("old-1", age=timedelta(days=20)),
            _record("fresh-1"),
            _record("old-2", age=timedelta(days=40)),
            _record("fresh-2", classification=Classification.FOUNDATIONAL, age=timedelta(days=400)),
        ]
        kept, expired = partition_records(records, NOW, SHELF)
        assert [r.content for r in kept] == ["fresh-1", "fresh-2"]
        assert [r.content for r in expired] == ["old-1", "old-2"]


class TestPruneManager:
    def test_prune_rewrites_only_changed_domains(self, store):
        store.append("api", _record("fresh"))
        store.append("api", _record("old", age=timedelta(days=20)))
        store.append("docs", _record("fresh-doc"))
        docs_before = store.log("docs").path.read_bytes()

        result = PruneManager(store, SHELF).prune(["api", "docs"], now=NOW)

        assert result.total_pruned == 1
        assert [r.to_dict() for r in result.results] == [
            {"domain": "api", "before": 2, "pruned": 1, "after": 1},
        ]
        assert [r.content for r in store.load("api")] == ["fresh"]
        assert store.log("docs").path.read_bytes() == docs_before

    def test_empty_domain_skipped(self, store):
        store.create_domain("empty")
        result = PruneManager(store, SHELF).prune(["empty"], now=NOW)
        assert result.results == []
        assert result.total_pruned == 0

    def test_dry_run_does_not_write(self, store):
        store.append("api", _record("old", age=timedelta(days=20)))
        before = store.log("api").path.read_bytes()

        result = PruneManager(store, SHELF).prune(["api"], now=NOW, dry_run=True)

        assert result.dry_run is True
        assert result.total_pruned == 1
        assert store.log("api").path.read_bytes() == before

    def test_idempotent(self, store):
        store.append("api", _record("old", age=timedelta(days=20)))
        store.append("api", _record("fresh"))
        manager = PruneManager(store, SHELF)
        manager.prune(["api"], now=NOW)
        second = manager.prune(["api"], now=NOW)
        assert second.total_pruned == 0
        assert [r.content for r in store.load("api")] == ["fresh"]

    def test_all_expired_leaves_empty_file(self, store):
        store.append("api", _record("old", age=timedelta(days=20)))
        PruneManager(store, SHELF).prune(["api"], now=NOW)
        assert store.log("api").exists()
        assert store.load("api") == []

    def test_abort_reports_partial_progress(self, store):
        store.append("a", _record("old-a", age=timedelta(days=20)))
        store.append("b", _record("old-b", age=timedelta(days=20)))
        store.append("c", _record("old-c", age=timedelta(days=20)))
        store.log("b").path.write_text("{broken\n", encoding="utf-8")

        with pytest.raises(PruneAbortedError) as exc_info:
            PruneManager(store, SHELF).prune(["a", "b", "c"], now=NOW)

        err = exc_info.value
        assert err.domain == "b"
        assert [r.domain for r in err.partial.results] == ["a"]
        assert store.load("a") == []
        assert [r.content for r in store.load("c")] == ["old-c"]
