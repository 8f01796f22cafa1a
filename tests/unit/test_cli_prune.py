"""Unit tests for mulch prune and mulch validate CLI commands."""
from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from mulch.expertise.models import Classification, ConventionRecord, utcnow
from mulch.expertise.staleness import DomainPruneResult, PruneAbortedError, PruneResult
from mulch.expertise.store import ExpertiseStore


def _iso_days_ago(days: int) -> str:
    return (utcnow() - timedelta(days=days)).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _seed(project, *ages: tuple[str, int, Classification]) -> ExpertiseStore:
    store = ExpertiseStore(project)
    for content, days, classification in ages:
        store.append("testing", ConventionRecord(
            content=content, classification=classification, recorded_at=_iso_days_ago(days),
        ))
    return store


class TestPruneHelpText:
    def test_prune_help_text(self, capsys):
        from mulch.cli.prune import run_prune

        with pytest.raises(SystemExit) as exc_info:
            run_prune(["--help"])

        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "prune" in captured.out.lower()
        assert "--dry-run" in captured.out

    def test_prune_unknown_arg_exits_nonzero(self):
        from mulch.cli.prune import run_prune

        with pytest.raises(SystemExit) as exc_info:
            run_prune(["--unknown-flag"])

        assert exc_info.value.code != 0


class TestPruneCommand:
    def test_prune_removes_stale_records(self, project, capsys):
        from mulch.cli.prune import run_prune

        store = _seed(
            project,
            ("stale", 20, Classification.TACTICAL),
            ("fresh", 1, Classification.TACTICAL),
            ("forever", 900, Classification.FOUNDATIONAL),
        )

        assert run_prune(["--root", str(project)]) == 0

        out = capsys.readouterr().out
        assert "testing: Pruned 1 of 3 entries (2 remaining)" in out
        assert "Total: 1 entries pruned." in out
        assert [r.content for r in store.load("testing")] == ["fresh", "forever"]

    def test_prune_dry_run_keeps_file(self, project, capsys):
        from mulch.cli.prune import run_prune

        store = _seed(project, ("stale", 40, Classification.OBSERVATIONAL))
        before = store.log("testing").path.read_bytes()

        assert run_prune(["--dry-run", "--root", str(project)]) == 0

        out = capsys.readouterr().out
        assert "[DRY RUN] testing: Would prune 1 of 1 entries (0 remaining)" in out
        assert store.log("testing").path.read_bytes() == before

    def test_prune_nothing_stale(self, project, capsys):
        from mulch.cli.prune import run_prune

        _seed(project, ("fresh", 0, Classification.TACTICAL))

        assert run_prune(["--root", str(project)]) == 0
        assert "No stale entries found" in capsys.readouterr().out

    def test_prune_json(self, project, capsys):
        from mulch.cli.prune import run_prune

        _seed(project, ("stale", 20, Classification.TACTICAL))

        assert run_prune(["--json", "--root", str(project)]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "success": True,
            "command": "prune",
            "dry_run": False,
            "total_pruned": 1,
            "results": [{"domain": "testing", "before": 1, "pruned": 1, "after": 0}],
        }

    def test_prune_shelf_life_from_env(self, project, monkeypatch, capsys):
        from mulch.cli.prune import run_prune

        _seed(project, ("three days", 3, Classification.TACTICAL))
        monkeypatch.setenv("MULCH_SHELF_LIFE_TACTICAL", "2")

        assert run_prune(["--root", str(project)]) == 0
        assert "Pruned 1 of 1" in capsys.readouterr().out

    def test_prune_abort_reports_partial(self, project, capsys):
        from mulch.cli.prune import run_prune

        partial = PruneResult(results=[DomainPruneResult(domain="alpha", before=2, pruned=1, after=1)], total_pruned=1)
        error = PruneAbortedError("testing", partial)
        error.__cause__ = OSError("disk full")

        with patch("mulch.expertise.staleness.PruneManager.prune", side_effect=error):
            rc = run_prune(["--root", str(project)])

        assert rc == 1
        captured = capsys.readouterr()
        assert "alpha: Pruned 1 of 2 entries" in captured.out
        assert "aborted at domain 'testing'" in captured.err
        assert "disk full" in captured.err

    def test_prune_without_project(self, tmp_path, capsys):
        from mulch.cli.prune import run_prune

        assert run_prune(["--root", str(tmp_path)]) == 1
        assert "mulch init" in capsys.readouterr().err


class TestValidateCommand:
    def test_validate_help_text(self, capsys):
        from mulch.cli.validate_cmd import run_validate

        with pytest.raises(SystemExit) as exc_info:
            run_validate(["--help"])

        assert exc_info.value.code == 0
        assert "validate" in capsys.readouterr().out.lower()

    def test_validate_clean(self, project, capsys):
        from mulch.cli.validate_cmd import run_validate

        _seed(project, ("ok", 0, Classification.TACTICAL))

        assert run_validate(["--root", str(project)]) == 0
        assert "All 1 records are valid." in capsys.readouterr().out

    def test_validate_reports_bad_lines(self, project, capsys):
        from mulch.cli.validate_cmd import run_validate

        store = _seed(project, ("ok", 0, Classification.TACTICAL))
        with store.log("testing").path.open("a", encoding="utf-8") as f:
            f.write('{"type":"convention"}\n')

        assert run_validate(["--json", "--root", str(project)]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["valid"] is False
        assert payload["total_records"] == 2
        assert payload["errors"][0]["line"] == 2
