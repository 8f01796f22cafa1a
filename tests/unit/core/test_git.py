"""Tests for mulch.core.git (git is mocked via subprocess.run)."""
from __future__ import annotations

import subprocess
from types import SimpleNamespace
from unittest.mock import patch

from mulch.core import git


def _completed(stdout: str) -> SimpleNamespace:
    return SimpleNamespace(stdout=stdout, returncode=0)


class TestIsGitRepo:
    def test_true(self, tmp_path):
        with patch("mulch.core.git.subprocess.run", return_value=_completed("true\n")) as run:
            assert git.is_git_repo(tmp_path)
        args, kwargs = run.call_args
        assert args[0] == ["git", "rev-parse", "--is-inside-work-tree"]
        assert kwargs["cwd"] == tmp_path

    def test_git_failure(self, tmp_path):
        err = subprocess.CalledProcessError(128, ["git"])
        with patch("mulch.core.git.subprocess.run", side_effect=err):
            assert not git.is_git_repo(tmp_path)

    def test_git_missing(self, tmp_path):
        with patch("mulch.core.git.subprocess.run", side_effect=FileNotFoundError("git")):
            assert not git.is_git_repo(tmp_path)


class TestGetChangedFiles:
    def test_union_sorted_and_deduped(self, tmp_path):
        outputs = {
            ("diff", "--name-only", "HEAD~1"): "src/b.py\nsrc/a.py\n",
            ("diff", "--name-only", "--cached"): "src/a.py\nnew.py\n",
            ("diff", "--name-only"): "\nREADME.md\n",
        }

        def fake_run(cmd, **kwargs):
            return _completed(outputs[tuple(cmd[1:])])

        with patch("mulch.core.git.subprocess.run", side_effect=fake_run):
            assert git.get_changed_files(tmp_path, "HEAD~1") == ["README.md", "new.py", "src/a.py", "src/b.py"]

    def test_bad_ref_still_reports_working_tree(self, tmp_path):
        def fake_run(cmd, **kwargs):
            if "HEAD~1" in cmd:
                raise subprocess.CalledProcessError(128, cmd)
            return _completed("dirty.py\n")

        with patch("mulch.core.git.subprocess.run", side_effect=fake_run):
            assert git.get_changed_files(tmp_path, "HEAD~1") == ["dirty.py"]


class TestGetExpertiseDiff:
    def test_scoped_to_expertise_dir(self, tmp_path):
        with patch("mulch.core.git.subprocess.run", return_value=_completed("diff text")) as run:
            assert git.get_expertise_diff(tmp_path, "main") == "diff text"
        assert run.call_args.args[0] == ["git", "diff", "main", "--", ".mulch/expertise/"]

    def test_failure_is_empty(self, tmp_path):
        err = subprocess.CalledProcessError(128, ["git"])
        with patch("mulch.core.git.subprocess.run", side_effect=err):
            assert git.get_expertise_diff(tmp_path, "main") == ""
