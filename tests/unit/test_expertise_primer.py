"""Tests for the priming engine."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from mulch.expertise.models import (
    Classification,
    ConventionRecord,
    DecisionRecord,
    Evidence,
    FailureRecord,
    GuideRecord,
    PatternRecord,
    ReferenceRecord,
)
from mulch.expertise.primer import EMPTY_HINT, PrimeFormatter, PrimeSection, build_prime, truncate
from mulch.expertise.store import ExpertiseStore

TS = "2026-01-01T00:00:00.000Z"
NOW = datetime(2026, 1, 3, tzinfo=timezone.utc)


def _tactical(cls, **kwargs):
    return cls(classification=Classification.TACTICAL, recorded_at=TS, **kwargs)


@pytest.fixture
def store(tmp_path) -> ExpertiseStore:
    return ExpertiseStore(tmp_path)


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("Use ruff.") == "Use ruff."

    def test_cuts_at_first_sentence(self):
        text = "Keep handlers thin. " + "x" * 120
        assert truncate(text) == "Keep handlers thin."

    def test_hard_cut_without_sentence(self):
        assert truncate("y" * 150) == "y" * 100 + "..."


class TestBuildPrime:
    def test_all_records_without_context(self, store):
        store.append("cli", _tactical(ConventionRecord, content="Use ESM"))
        store.create_domain("empty")

        sections = build_prime(store, ["cli", "empty"])

        assert [(s.domain, s.entry_count) for s in sections] == [("cli", 1), ("empty", 0)]
        assert sections[0].last_updated is not None

    def test_context_keeps_matching_and_domain_wide_records(self, store):
        store.append("cli", _tactical(PatternRecord, name="entry", description="d", files=["src/cli.ts"]))
        store.append("cli", _tactical(PatternRecord, name="other", description="d", files=["src/db.ts"]))
        store.append("cli", _tactical(ConventionRecord, content="Use ESM"))
        store.append("db", _tactical(PatternRecord, name="repo", description="d", files=["src/repo.ts"]))

        sections = build_prime(store, ["cli", "db"], changed_files=["src/cli.ts"])

        assert [s.domain for s in sections] == ["cli"]
        assert [getattr(r, "name", None) for r in sections[0].records] == ["entry", None]


class TestPrimeFormatter:
    def _section(self) -> PrimeSection:
        return PrimeSection(
            domain="cli",
            records=[
                _tactical(ConventionRecord, content="Use ESM", tags=["style"], evidence=Evidence(commit="abc")),
                _tactical(PatternRecord, name="entry", description="CLI entry", files=["src/cli.ts"]),
                _tactical(FailureRecord, description="Flaky test", resolution="Pin the clock"),
                _tactical(DecisionRecord, title="YAML config", rationale="Comments allowed"),
                _tactical(ReferenceRecord, name="docs", description="Docs site"),
                _tactical(GuideRecord, name="release", description="Tag and push"),
            ],
            last_updated=NOW - timedelta(hours=2),
        )

    def test_markdown(self):
        out = PrimeFormatter(now=NOW).format_markdown([self._section()])
        assert out.splitlines() == [
            "# Project Expertise (via Mulch)",
            "",
            "## cli (6 entries, updated 2h ago)",
            "- [convention] Use ESM",
            "- [pattern] entry: CLI entry (src/cli.ts)",
            "- [failure] Flaky test -> Pin the clock",
            "- [decision] YAML config: Comments allowed",
            "- [reference] docs: Docs site",
            "- [guide] release: Tag and push",
        ]

    def test_markdown_full_adds_metadata(self):
        out = PrimeFormatter(now=NOW).format_markdown([self._section()], full=True)
        assert "- [convention] Use ESM (tactical) [commit: abc] [tags: style]" in out

    def test_markdown_empty(self):
        out = PrimeFormatter().format_markdown([])
        assert out.endswith(EMPTY_HINT)

    def test_plain_groups_by_type(self):
        out = PrimeFormatter(now=NOW).format_plain([self._section()])
        lines = out.splitlines()
        assert lines[:3] == ["Project Expertise (via Mulch)", "=" * len("Project Expertise (via Mulch)"), ""]
        assert "[cli] 6 entries (updated 2h ago)" in lines
        assert "Known Failures:" in lines
        assert "    Fix: Pin the clock" in lines
        assert lines.index("Conventions:") < lines.index("Patterns:") < lines.index("Guides:")

    def test_json(self):
        payload = PrimeFormatter().format_json([self._section()])
        assert payload["type"] == "expertise"
        (domain,) = payload["domains"]
        assert domain["domain"] == "cli"
        assert domain["entry_count"] == 6
        assert domain["records"][0]["content"] == "Use ESM"
