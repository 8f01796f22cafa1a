"""Unit tests for mulch edit and mulch delete."""
from __future__ import annotations

import json

import pytest

from mulch.cli.edit_cmd import run_delete, run_edit
from mulch.expertise.models import Classification, ConventionRecord, PatternRecord
from mulch.expertise.store import ExpertiseStore

TS = "2024-01-01T00:00:00.000Z"


@pytest.fixture
def seeded(project):
    store = ExpertiseStore(project)
    store.append("testing", ConventionRecord(
        id="mx-aaaaaa", content="Use ruff", classification=Classification.TACTICAL, recorded_at=TS,
    ))
    store.append("testing", PatternRecord(
        id="mx-bbbbbb", name="repo", description="Repository layer", files=["src/repo.py"],
        classification=Classification.TACTICAL, recorded_at=TS,
    ))
    return project


def _run(func, project, *argv: str) -> int:
    return func([*argv, "--root", str(project)])


class TestDeleteCommand:
    def test_delete_by_id(self, seeded, capsys):
        assert _run(run_delete, seeded, "testing", "mx-aaaaaa") == 0
        assert "Deleted convention #1" in capsys.readouterr().out
        assert [r.id for r in ExpertiseStore(seeded).load("testing")] == ["mx-bbbbbb"]

    def test_delete_by_index_json(self, seeded, capsys):
        assert _run(run_delete, seeded, "testing", "2", "--json") == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["id"] == "mx-bbbbbb"
        assert payload["index"] == 2
        assert payload["summary"] == "repo: Repository layer"
        assert len(ExpertiseStore(seeded).load("testing")) == 1

    def test_delete_out_of_range(self, seeded, capsys):
        assert _run(run_delete, seeded, "testing", "5") == 1
        assert "out of range" in capsys.readouterr().err
        assert len(ExpertiseStore(seeded).load("testing")) == 2

    def test_delete_unknown_id(self, seeded, capsys):
        assert _run(run_delete, seeded, "testing", "mx-ffffff", "--json") == 1
        assert "not found" in json.loads(capsys.readouterr().err)["error"]

    def test_delete_unknown_domain(self, seeded, capsys):
        assert _run(run_delete, seeded, "nope", "1") == 1
        assert 'Domain "nope" not found' in capsys.readouterr().err


class TestEditCommand:
    def test_edit_convention_content(self, seeded, capsys):
        assert _run(run_edit, seeded, "testing", "mx-aaaaaa", "--content", "Use ruff format") == 0
        assert "Updated convention #1" in capsys.readouterr().out

        first, second = ExpertiseStore(seeded).load("testing")
        assert first.content == "Use ruff format"
        assert first.id == "mx-aaaaaa"
        assert first.recorded_at == TS
        assert second.name == "repo"

    def test_edit_pattern_files_and_classification(self, seeded, capsys):
        rc = _run(
            run_edit, seeded, "testing", "2",
            "--files", "src/a.py, src/b.py",
            "--classification", "foundational",
            "--json",
        )
        assert rc == 0
        record = json.loads(capsys.readouterr().out)["record"]
        assert record["files"] == ["src/a.py", "src/b.py"]
        assert record["classification"] == "foundational"

    def test_edit_tags_empty_clears(self, seeded):
        _run(run_edit, seeded, "testing", "1", "--tags", "style,lint")
        assert ExpertiseStore(seeded).load("testing")[0].tags == ["style", "lint"]

        _run(run_edit, seeded, "testing", "1", "--tags", "")
        assert ExpertiseStore(seeded).load("testing")[0].tags is None

    def test_option_not_applicable_to_type(self, seeded, capsys):
        assert _run(run_edit, seeded, "testing", "1", "--title", "x") == 1
        assert "--title does not apply to convention records" in capsys.readouterr().err
        assert ExpertiseStore(seeded).load("testing")[0].content == "Use ruff"

    def test_nothing_to_update(self, seeded, capsys):
        assert _run(run_edit, seeded, "testing", "1") == 1
        assert "Nothing to update" in capsys.readouterr().err

    def test_edit_bad_identifier(self, seeded, capsys):
        assert _run(run_edit, seeded, "testing", "abc", "--content", "x") == 1
        assert "positive integer" in capsys.readouterr().err
